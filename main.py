from fastapi import FastAPI, Query, Request
import os
import logging
from datetime import datetime
from typing import Optional
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from calculation_service import CalculationService
from config import AppContext, build_context, load_config
from utils.periods import validate_query_params
from utils.result import Result

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

config = load_config()

# Create logs directory if it doesn't exist
os.makedirs(config.log_dir, exist_ok=True)

logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# One log file per day, shared by every module of the service
log_file_path = os.path.join(config.log_dir, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
logging.getLogger().addHandler(file_handler)


def result_response(result: Result) -> JSONResponse:
    """Render a Result as a JSON response carrying its status code."""
    return JSONResponse(status_code=result.status_code.value, content=result.to_dict())


def get_service(request: Request) -> CalculationService:
    return CalculationService(request.app.state.context)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the API around an application context.

    Args:
        context: Collaborators to use; built from the environment when omitted

    Returns:
        FastAPI: The configured application
    """
    context = context or build_context(config)

    application = FastAPI(
        title="Meal Stipend Calculator API",
        description="Computes monthly meal stipend balances from uploaded attendance workbooks",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    application.state.context = context

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    os.makedirs(context.store.root, exist_ok=True)
    application.mount("/storage", StaticFiles(directory=context.store.root), name="storage")

    @application.get("/calculateSalary", tags=["Stipend"])
    def calculate_salary(
        request: Request,
        sheetYear: Optional[str] = Query(None, description="Target year, e.g. 2025"),
        sheetMonth: Optional[str] = Query(None, description="Target month, 1-12"),
    ):
        """
        Compute the stipend balance of every employee for a month.

        Reads every workbook of the month's half-year folder, computes each
        employee and uploads the results to the configured spreadsheet.

        Returns:
            JSONResponse: 200 with the results, 400 for bad parameters,
            404 when no workbook exists, 500 when none could be processed
        """
        logger.info("Calculation requested", extra={"sheet_year": sheetYear, "sheet_month": sheetMonth})
        try:
            result = validate_query_params(sheetYear, sheetMonth).and_then(
                lambda period: get_service(request).calculate(*period)
            )
        except Exception as e:
            logger.exception("Calculation error", extra={"sheet_year": sheetYear, "sheet_month": sheetMonth})
            return JSONResponse(status_code=500, content={
                "error": "급여 계산 중 서버 에러가 발생했습니다.",
                "details": str(e)
            })
        return result_response(result)

    @application.get("/getStorageFile", tags=["Storage"])
    def get_storage_file(
        request: Request,
        sheetYear: Optional[str] = Query(None, description="Target year, e.g. 2025"),
        sheetMonth: Optional[str] = Query(None, description="Target month, 1-12"),
    ):
        """List the files of a month's half-year folder with their download links."""
        try:
            result = validate_query_params(sheetYear, sheetMonth).and_then(
                lambda period: get_service(request).list_files(*period)
            )
        except Exception as e:
            logger.exception("File listing error", extra={"sheet_year": sheetYear, "sheet_month": sheetMonth})
            return JSONResponse(status_code=500, content={
                "error": "파일 목록 조회 중 에러가 발생했습니다.",
                "details": str(e)
            })
        return result_response(result)

    return application


app = create_app()


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Meal Stipend Calculator API in development mode.")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
