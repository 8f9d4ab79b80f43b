"""
Cell values as a spreadsheet user sees them.

The workbook reader hands back plain Python scalars (str, int, float, bool,
datetime) together with each cell's number format. CellValue wraps both and
renders the display text the spreadsheet shows, so the transformer never has
to care about the parsing library.
"""
from datetime import datetime, date, time
from typing import Any

from utils.number_format import GENERAL, format_number, format_date, is_date_format


class CellValue:
    """Base class for a single cell. Subclasses implement display_text()."""

    def __init__(self, value: Any = None, number_format: str = GENERAL):
        self.value = value
        self.number_format = number_format or GENERAL

    @staticmethod
    def from_raw(value: Any, number_format: str = GENERAL) -> "CellValue":
        """
        Wrap a raw scalar produced by the workbook reader.

        Error cells such as #DIV/0! arrive as their error text and become Text.

        Args:
            value: Scalar value of the cell (None or "" mean the cell is empty)
            number_format: Number format code of the cell

        Returns:
            CellValue: The matching Blank, Boolean, Number, Date or Text cell
        """
        if value is None:
            return Blank()
        if isinstance(value, str):
            return Blank() if value == "" else Text(value, number_format)
        # bool is an int subclass, check it first
        if isinstance(value, bool):
            return Boolean(value, number_format)
        if isinstance(value, (int, float)):
            return Number(value, number_format)
        if isinstance(value, (datetime, date, time)):
            return Date(value, number_format)
        return Text(str(value), number_format)

    @property
    def is_blank(self) -> bool:
        return False

    @property
    def is_numeric(self) -> bool:
        return False

    def display_text(self) -> str:
        raise NotImplementedError

    def __eq__(self, other):
        return type(self) is type(other) and self.value == other.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Blank(CellValue):
    """An empty or missing cell. Renders as empty text."""

    @property
    def is_blank(self) -> bool:
        return True

    def display_text(self) -> str:
        return ""


class Text(CellValue):
    def display_text(self) -> str:
        return self.value


class Number(CellValue):
    """A numeric cell, rendered through its number format (General by default)."""

    @property
    def is_numeric(self) -> bool:
        return True

    def display_text(self) -> str:
        return format_number(self.value, self.number_format)


class Boolean(CellValue):
    def display_text(self) -> str:
        return "TRUE" if self.value else "FALSE"


class Date(CellValue):
    """
    A date, datetime or time cell.

    Rendered through its date format. Without one, dates show as ISO dates and
    the time part is shown only when it is not midnight.
    """

    def display_text(self) -> str:
        value = self.value
        if is_date_format(self.number_format):
            return format_date(value, self.number_format)
        if isinstance(value, time):
            return value.strftime("%H:%M:%S")
        if isinstance(value, datetime):
            if value.time() == time(0, 0):
                return value.strftime("%Y-%m-%d")
            return value.strftime("%Y-%m-%d %H:%M:%S")
        return value.strftime("%Y-%m-%d")
