import logging
import time
import uuid

logger = logging.getLogger(__name__)


class LogContext:
    """Context manager that logs the start, duration and outcome of a pipeline step"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.duration = 0.0
        self.request_id = kwargs.pop('request_id', str(uuid.uuid4())[:8])
        self.extra = kwargs

    def __enter__(self):
        self.start_time = time.time()
        logger.info(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - self.start_time
        if exc_type:
            logger.error(
                f"Failed {self.operation_name} in {self.duration:.2f}s: {str(exc_val)}",
                extra={"request_id": self.request_id, "duration": self.duration, **self.extra},
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            logger.info(
                f"Completed {self.operation_name} in {self.duration:.2f}s",
                extra={"request_id": self.request_id, "duration": self.duration, **self.extra}
            )
        return False
