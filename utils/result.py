from typing import Generic, TypeVar, Optional, Callable, Any, Dict, Iterable, List, Tuple, Union
from http import HTTPStatus

T = TypeVar('T')
U = TypeVar('U')


class Result(Generic[T]):
    """
    Outcome of a step in the stipend pipeline.

    A Result is either a success carrying ``data`` or a failure carrying an
    ``error`` message. Both carry the HTTP status the API layer should answer
    with, so a failure deep in the pipeline keeps its meaning all the way to
    the response.

    Attributes:
        success (bool): Whether the step succeeded
        data (Optional[T]): Payload of a successful step
        error (Optional[str]): Human-readable reason of a failed step
        status_code (HTTPStatus): 200 for success, 400 for failure unless given
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.error = error

        if status_code is None:
            self.status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        else:
            self.status_code = HTTPStatus(status_code)

    @classmethod
    def ok(cls, data: T, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.OK) -> "Result[T]":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.BAD_REQUEST) -> "Result[T]":
        return cls(success=False, error=error, status_code=status_code)

    @classmethod
    def not_found(cls, error: str = "Resource not found") -> "Result[T]":
        """Failure answered with 404, e.g. an empty period folder."""
        return cls(success=False, error=error, status_code=HTTPStatus.NOT_FOUND)

    @classmethod
    def invalid_input(cls, error: str = "Invalid input data") -> "Result[T]":
        """Failure answered with 400, e.g. a month outside 1-12."""
        return cls(success=False, error=error, status_code=HTTPStatus.BAD_REQUEST)

    @classmethod
    def server_error(cls, error: str = "Internal server error") -> "Result[T]":
        """Failure answered with 500."""
        return cls(success=False, error=error, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    @staticmethod
    def partition(results: Iterable["Result[T]"]) -> Tuple[List[T], List[str]]:
        """
        Split a batch of per-item results into payloads and error messages.

        The order of both lists follows the order of ``results``.

        Args:
            results: Results produced one per processed item

        Returns:
            Tuple[List[T], List[str]]: (successful payloads, failure messages)
        """
        values: List[T] = []
        errors: List[str] = []
        for result in results:
            if result.is_success():
                values.append(result.data)  # type: ignore
            else:
                errors.append(result.error or "")
        return values, errors

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def and_then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """
        Chain a step that can itself fail. A failure short-circuits and keeps
        its status code.
        """
        if not self.is_success():
            return Result.fail(self.error or "", status_code=self.status_code)
        return fn(self.data)  # type: ignore

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the JSON body of an API response.

        Pydantic payloads are dumped with their camelCase aliases.

        Returns:
            Dict[str, Any]: success flag, status code and phrase, plus data or error
        """
        response: Dict[str, Any] = {
            "success": self.success,
            "status_code": self.status_code.value,
            "status": self.status_code.phrase
        }

        if self.is_success():
            data = self.data
            if hasattr(data, "model_dump"):
                data = data.model_dump(mode="json", by_alias=True)  # type: ignore
            response["data"] = data
        else:
            response["error"] = self.error

        return response
