import os
import pytest
from unittest.mock import patch
from fastapi import status
from fastapi.testclient import TestClient

# Import the application from main.py
import main
from main import app, build_error_response, OUTPUT_FILENAME
from utils.result import Result

# Create TestClient for FastAPI app testing
client = TestClient(app)

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def upload(content, filename="input.xlsx"):
    """Post content to /upload as the multipart 'file' field."""
    return client.post("/upload", files={"file": (filename, content, XLSX_TYPE)})


class TestUploadEndpoint:
    """
    Tests for the POST /upload endpoint.
    """

    def test_valid_workbook_returns_text_attachment(self, make_workbook, make_format_sheet):
        """
        Test that a valid workbook comes back as a plain text attachment.
        """
        data = make_workbook(
            make_format_sheet("Delimited", ",", [["id"], ["name"]]),
            [["id", "name"], ["7", "Bob"], ["8", "Eve"]],
        )

        response = upload(data)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["content-disposition"] == f"attachment; filename={OUTPUT_FILENAME}"
        assert response.content == ("7,Bob" + os.linesep + "8,Eve" + os.linesep).encode()

    def test_format_errors_return_400_with_every_error(self, make_workbook, make_format_sheet):
        """
        Test that all validation errors of the failing phase are returned as JSON.
        """
        data = make_workbook(
            make_format_sheet("Fixed Length", None, [["id", "x"], ["name", "y"]]),
            [["id", "name"], ["7", "Bob"]],
        )

        response = upload(data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "success": False,
            "status_code": 400,
            "status": "Bad Request",
            "errors": [
                "Format sheet, row 4: Length cell is not numeric.",
                "Format sheet, row 5: Length cell is not numeric.",
            ],
        }

    def test_unreadable_file_returns_400(self):
        response = upload(b"plain text, not a workbook", filename="notes.txt")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["success"] is False
        assert len(body["errors"]) == 1
        assert body["errors"][0].startswith("Failed to read Excel file")

    def test_unexpected_exception_returns_500(self):
        """
        Test that an unexpected failure is reported as a single error with status 500.
        """
        with patch.object(main.transformer, 'process', side_effect=RuntimeError("Test error")), \
             patch.object(main.logger, 'exception'):
            response = upload(b"anything")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["errors"] == ["Test error"]

    def test_missing_file_field_returns_422(self):
        response = client.post("/upload")

        assert response.status_code == 422


class TestHome:
    """
    Tests for the GET / endpoint.
    """

    def test_home_describes_upload(self):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert "POST /upload" in response.json()["upload"]


class TestBuildErrorResponse:
    """
    Tests for the build_error_response helper.
    """

    @pytest.mark.parametrize(
        "result, expected_status",
        [
            (Result.fail(["a", "b"]), 400),
            (Result.invalid_input("bad"), 400),
            (Result.server_error("boom"), 500),
        ],
        ids=["format-errors", "invalid-input", "server-error"]
    )
    def test_status_code_follows_result(self, result, expected_status):
        """
        Test that the response status and body mirror the failed Result.

        Args:
            result: Failed Result to convert
            expected_status: Expected HTTP status code
        """
        response = build_error_response(result)

        assert response.status_code == expected_status
        assert b'"success":false' in response.body
