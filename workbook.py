"""
Read-only workbook model built from raw .xlsx bytes.

openpyxl does the parsing; this module turns each worksheet into rows of
CellValue so the transformer works with typed, formatted cells and zero-based
row/column indices only.
"""
import io
import logging
import time
from typing import List

from openpyxl import load_workbook

from errors import DocumentReadError
from utils.cell import CellValue, Blank

logger = logging.getLogger(__name__)


class Row:
    """One sheet row. Cells past the last occupied one read as Blank."""

    def __init__(self, index: int, cells: List[CellValue]):
        self.index = index
        # Trailing blanks don't count as cells, the same way a spreadsheet
        # only stores cells that hold something.
        while cells and cells[-1].is_blank:
            cells = cells[:-1]
        self.cells = cells

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    @property
    def is_blank(self) -> bool:
        return all(cell.is_blank for cell in self.cells)

    def cell(self, column: int) -> CellValue:
        """
        Get the cell at a zero-based column index.

        Raises:
            IndexError: If the column index is negative
        """
        if column < 0:
            raise IndexError(f"Column index {column} is out of range")
        if column >= len(self.cells):
            return Blank()
        return self.cells[column]

    def occupied_cells(self):
        """Yield (column index, cell) for every non-blank cell, left to right."""
        for column, cell in enumerate(self.cells):
            if not cell.is_blank:
                yield column, cell

    def __repr__(self) -> str:
        return f"Row({self.index}, {self.cells!r})"


class Sheet:
    def __init__(self, name: str, rows: List[Row]):
        self.name = name
        self.rows = rows

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def row(self, index: int) -> Row:
        if index >= len(self.rows):
            return Row(index, [])
        return self.rows[index]

    @classmethod
    def from_worksheet(cls, worksheet) -> "Sheet":
        """
        Build a Sheet from an openpyxl worksheet.

        Trailing blank rows are dropped, so row_count is one past the last
        row that holds something.

        Args:
            worksheet: openpyxl Worksheet

        Returns:
            Sheet: Rows of CellValue in sheet order
        """
        rows = [
            Row(index, [CellValue.from_raw(cell.value, cell.number_format) for cell in cells])
            for index, cells in enumerate(worksheet.iter_rows())
        ]
        while rows and rows[-1].is_blank:
            rows.pop()
        return cls(worksheet.title, rows)

    def __repr__(self) -> str:
        return f"Sheet({self.name!r}, rows={self.row_count})"


class Workbook:
    def __init__(self, sheets: List[Sheet]):
        self.sheets = sheets

    @property
    def sheet_count(self) -> int:
        return len(self.sheets)

    def sheet(self, index: int) -> Sheet:
        return self.sheets[index]


def read_workbook(data: bytes) -> Workbook:
    """
    Parse raw workbook bytes into a Workbook.

    The workbook is loaded with data_only=True so formula cells give their
    cached result, and every cell keeps its number format for display.
    Chart sheets are not worksheets and are skipped.

    Args:
        data: Content of an .xlsx file

    Returns:
        Workbook: All worksheets, in workbook order

    Raises:
        DocumentReadError: If the bytes cannot be read as a workbook
    """
    if not data:
        raise DocumentReadError("Failed to read Excel file: the uploaded file is empty")

    try:
        logger.debug("Attempting to read Excel workbook", extra={"size_bytes": len(data)})
        start_time = time.time()
        document = load_workbook(io.BytesIO(data), data_only=True)
        sheets = [Sheet.from_worksheet(worksheet) for worksheet in document.worksheets]
        document.close()
        read_time = time.time() - start_time
    except Exception as e:
        logger.error(
            "Failed to read Excel workbook",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        raise DocumentReadError(f"Failed to read Excel file: {str(e)}") from e

    logger.info(
        "Successfully read Excel workbook",
        extra={
            "sheet_count": len(sheets),
            "row_counts": [sheet.row_count for sheet in sheets],
            "read_time_seconds": f"{read_time:.2f}"
        }
    )
    return Workbook(sheets)
