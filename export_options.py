from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, field_validator


class ExportMode(str, Enum):
    """Output mode, valued by the export-type token written on the format sheet."""
    FIXED_WIDTH = "Fixed Length"
    DELIMITED = "Delimited"

    @classmethod
    def tokens(cls) -> List[str]:
        return [mode.value for mode in cls]


class Field(BaseModel):
    """
    One output column: a name and, in fixed-width mode, the width to pad to.

    Attributes:
        name: Field name, matched exactly against the data sheet's column headers
        width: Output width in characters (ignored in delimited mode)
    """
    model_config = ConfigDict(frozen=True)

    name: str
    width: int = 0

    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)


class ExportOptions(BaseModel):
    """
    Export settings read from the format sheet.

    Mode and delimiter are set at construction; fields are appended afterwards
    with add_fields() once the field rows have been parsed.

    Attributes:
        mode: Delimited or fixed-width output
        delimiter: Separator placed between fields; the token "TAB" becomes a tab character
        fields: Output columns in output order
    """
    mode: ExportMode
    delimiter: str = ""
    fields: List[Field] = []

    @field_validator("delimiter", mode="before")
    @classmethod
    def normalize_delimiter(cls, value):
        if value is None:
            return ""
        return "\t" if value == "TAB" else value

    @property
    def is_delimited(self) -> bool:
        return self.mode == ExportMode.DELIMITED

    def add_fields(self, fields: List[Field]) -> None:
        self.fields.extend(fields)
