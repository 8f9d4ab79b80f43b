"""
Pytest configuration file.

This file is automatically loaded by pytest and provides global test configuration.
It ensures the project's source directory is added to the Python path so that
modules can be imported properly during test execution, and provides a factory
for building .xlsx workbooks in memory.
"""
import io
import os
import sys

import pandas as pd
import pytest

# Add the current directory to the Python path
# This ensures imports work correctly when running tests
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))


def build_workbook(*sheets):
    """
    Build .xlsx bytes with one sheet per argument.

    Args:
        *sheets: Each sheet is a list of rows, each row a list of cell values.
            Rows may be ragged; None leaves a cell empty. A (value, number_format)
            tuple writes the value with that number format.

    Returns:
        bytes: The workbook content
    """
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for index, rows in enumerate(sheets):
            name = f"Sheet{index + 1}"
            values = [[cell[0] if isinstance(cell, tuple) else cell for cell in row] for row in rows]
            pd.DataFrame(values).to_excel(writer, sheet_name=name, header=False, index=False)
            for row_index, row in enumerate(rows):
                for column_index, cell in enumerate(row):
                    if isinstance(cell, tuple):
                        writer.sheets[name].cell(row=row_index + 1, column=column_index + 1).number_format = cell[1]
    return buffer.getvalue()


def format_sheet(export_type, delimiter, fields):
    """
    Rows of a format sheet in the expected layout.

    Args:
        export_type: Value of the export type cell
        delimiter: Value of the delimiter cell (None leaves it empty)
        fields: Field rows, e.g. [["id", 5], ["name", 10]]
    """
    return [
        ["Export Type", "Delimiter"],
        [export_type, delimiter],
        [None],
        ["Field Name", "Length"],
        *fields,
    ]


@pytest.fixture
def make_workbook():
    """Fixture exposing build_workbook to tests."""
    return build_workbook


@pytest.fixture
def make_format_sheet():
    """Fixture exposing format_sheet to tests."""
    return format_sheet
