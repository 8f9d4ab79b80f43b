from typing import List


class FormatError(Exception):
    """
    Raised when a workbook does not match the expected format/data layout.

    Carries every diagnostic found by the failing phase, in discovery order,
    so the user can correct all of them before resubmitting.

    Attributes:
        errors: Human-readable diagnostics
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DocumentReadError(IOError):
    """Raised when the uploaded bytes cannot be read as a workbook at all."""
