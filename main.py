from fastapi import FastAPI, File, UploadFile, status
import os
import logging
from datetime import datetime
from typing import List
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from file_transformer import FileTransformer
from utils.result import Result


# Application directory and settings taken from the environment
APP_DIR = os.path.dirname(os.path.abspath(__file__))
LOG_DIR = os.getenv("LOG_DIR", os.path.join(APP_DIR, "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
OUTPUT_FILENAME = os.getenv("OUTPUT_FILENAME", "output.txt")

# Create logs directory if it doesn't exist
os.makedirs(LOG_DIR, exist_ok=True)

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file
log_file_path = os.path.join(LOG_DIR, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path)
file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
logging.getLogger().addHandler(file_handler)


class ErrorResponse(BaseModel):
    """
    Response schema for a rejected upload.

    Attributes:
        success: Always False
        status_code: HTTP status code of the response
        status: HTTP status description
        errors: Every problem found in the uploaded workbook
    """
    success: bool = False
    status_code: int
    status: str
    errors: List[str]


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Excel Flat File Transformer API",
    description="Transforms a format sheet plus data sheet workbook into a fixed-width or delimited text file",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

transformer = FileTransformer()


def build_error_response(result: Result) -> JSONResponse:
    """
    Convert a failed Result into the JSON error response.

    Args:
        result: Failed Result with its diagnostics and status code

    Returns:
        JSONResponse: Body matching ErrorResponse
    """
    body = ErrorResponse(
        status_code=result.status_code.value,
        status=result.status_code.phrase,
        errors=result.errors,
    )
    return JSONResponse(status_code=result.status_code.value, content=body.model_dump())


# API Endpoints
@app.get("/", tags=["Transform"])
async def home():
    """Describe how to use the service."""
    return {
        "service": app.title,
        "upload": "POST /upload with a multipart 'file' field holding an .xlsx workbook",
        "sheets": [
            "Sheet 1: export type, delimiter and field list",
            "Sheet 2: column headers and data rows",
        ],
    }


@app.post(
    "/upload",
    tags=["Transform"],
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
               status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}}
)
def upload(file: UploadFile = File(...)):
    """
    Transform an uploaded workbook into the output text file.

    Returns:
        Response: The text file as an attachment, or a JSON list of errors
    """
    logger.info("Received upload", extra={"upload_filename": file.filename})

    try:
        result = transformer.process(file.file.read())
    except Exception as e:
        logger.exception("Unexpected error during file transformation")
        result = Result.server_error(str(e))

    if result.is_failure():
        return build_error_response(result)

    return Response(
        content=result.data,
        media_type="text/plain",
        headers={"Content-Disposition": f"attachment; filename={OUTPUT_FILENAME}"},
    )


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Excel Flat File Transformer API in development mode.")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
