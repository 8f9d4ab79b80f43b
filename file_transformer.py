import os
import logging
import time
import uuid
from typing import List, Dict, Optional, Tuple

from errors import DocumentReadError
from export_options import ExportMode, ExportOptions, Field
from utils.result import Result
from workbook import Workbook, Sheet, Row, read_workbook

logger = logging.getLogger(__name__)

# Format sheet layout (zero-based row indices)
OPTIONS_ROW = 1
FIRST_FIELD_ROW = 4
FORMAT_SHEET_MIN_ROWS = FIRST_FIELD_ROW + 1
DATA_SHEET_MIN_ROWS = 2
EXPECTED_SHEET_COUNT = 2


class LogContext:
    """Context manager that logs one transformation phase and how long it took"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.request_id = kwargs.pop('request_id', str(uuid.uuid4())[:8])
        self.extra = kwargs
        self.result: Optional[Result] = None

    def __enter__(self):
        self.start_time = time.time()
        logger.debug(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        extra = {"request_id": self.request_id, "duration": duration, **self.extra}
        if exc_type:
            logger.error(
                f"Failed {self.operation_name} in {duration:.2f}s: {str(exc_val)}",
                extra=extra,
                exc_info=(exc_type, exc_val, exc_tb)
            )
        elif self.result is not None and self.result.is_failure():
            logger.warning(
                f"Rejected at {self.operation_name} with {len(self.result.errors)} error(s)",
                extra={**extra, "errors": self.result.errors}
            )
        else:
            logger.debug(f"Completed {self.operation_name} in {duration:.2f}s", extra=extra)

    def record(self, result: Result) -> Result:
        """Remember the phase outcome so the exit log can report it, and pass it through."""
        self.result = result
        return result


class FileTransformer:
    """
    Transforms a two-sheet workbook into a flat text file.

    Sheet 0 (format sheet) declares the export type, the delimiter and the
    ordered output fields. Sheet 1 (data sheet) holds a header row and the data
    rows. Each phase gathers every problem it can find before failing, so the
    caller gets one consolidated list of corrections.

    The instance only holds read-only configuration and can be shared.
    """

    def __init__(self, line_separator: str = os.linesep, encoding: str = "utf-8"):
        self.line_separator = line_separator
        self.encoding = encoding

    def transform(self, data: bytes) -> bytes:
        """
        Transform workbook bytes into the output text file.

        Args:
            data: Content of an .xlsx workbook

        Returns:
            bytes: The rendered output file

        Raises:
            FormatError: If any validation or rendering phase fails
            DocumentReadError: If the bytes cannot be read as a workbook
        """
        return self._run(read_workbook(data)).unwrap_or_raise()

    def process(self, data: bytes) -> Result[bytes]:
        """
        Transform workbook bytes without raising.

        Returns:
            Result[bytes]: The output file, or every diagnostic of the failed phase
        """
        try:
            workbook = read_workbook(data)
        except DocumentReadError as e:
            return Result.invalid_input(str(e))
        return self._run(workbook)

    def _run(self, workbook: Workbook) -> Result[bytes]:
        request_id = str(uuid.uuid4())[:8]
        log_context = {"request_id": request_id, "sheet_count": workbook.sheet_count}
        logger.info("Transforming workbook", extra=log_context)

        with LogContext("workbook validation", **log_context) as ctx:
            result = ctx.record(self.validate_workbook(workbook))
        if result.is_failure():
            return result

        with LogContext("format sheet parsing", **log_context) as ctx:
            result = ctx.record(self.extract_export_options(workbook.sheet(0)))
        if result.is_failure():
            return result

        options = result.data
        data_sheet = workbook.sheet(1)

        with LogContext("data sheet validation", **log_context) as ctx:
            result = ctx.record(
                self.validate_data_sheet(data_sheet)
                .map(self.build_column_map)
                .and_then(lambda column_map: self.validate_data_fields(options.fields, column_map))
            )
        if result.is_failure():
            return result

        column_map = result.data
        with LogContext("rendering", **log_context) as ctx:
            result = ctx.record(self.render(data_sheet, options, column_map))

        if result.is_success():
            logger.info(
                f"Successfully transformed workbook into {len(result.data)} bytes",
                extra={**log_context, "field_count": len(options.fields), "mode": options.mode.value}
            )
        return result

    @staticmethod
    def validate_workbook(workbook: Workbook) -> Result[Workbook]:
        """Check that the workbook has exactly a format sheet and a data sheet."""
        errors: List[str] = []
        if workbook is None:
            errors.append("Workbook was null")
        elif workbook.sheet_count != EXPECTED_SHEET_COUNT:
            errors.append("There should be exactly 2 worksheets.")
        return Result.from_errors(errors, workbook)

    def extract_export_options(self, format_sheet: Sheet) -> Result[ExportOptions]:
        """
        Parse the export type, delimiter and field list from the format sheet.

        Layout: row 0 option labels, row 1 [export type, delimiter], row 2 blank,
        row 3 field-list labels, rows 4+ [field name, width].

        Args:
            format_sheet: The first sheet of the workbook

        Returns:
            Result[ExportOptions]: The export options, or every header and field-row error
        """
        if format_sheet.row_count < FORMAT_SHEET_MIN_ROWS:
            return Result.fail(f"Format sheet should have at least {FORMAT_SHEET_MIN_ROWS} rows.")

        errors: List[str] = []
        options_row = format_sheet.row(OPTIONS_ROW)
        export_type = options_row.cell(0).display_text()
        delimiter = options_row.cell(1).display_text()

        mode = None
        try:
            mode = ExportMode(export_type)
        except ValueError:
            errors.append(
                f"Export type '{export_type}' is not valid. Must be one of: {', '.join(ExportMode.tokens())}."
            )

        if mode == ExportMode.DELIMITED and not delimiter.strip():
            errors.append("Must choose delimiter for Delimited export type.")

        # Without a valid mode the cell requirements of the field rows are unknown
        if mode is None:
            return Result.fail(errors)

        options = ExportOptions(mode=mode, delimiter=delimiter)
        fields, field_errors = self._parse_fields(format_sheet, options.is_delimited)
        errors.extend(field_errors)
        options.add_fields(fields)
        return Result.from_errors(errors, options)

    @staticmethod
    def _parse_fields(format_sheet: Sheet, delimited: bool) -> Tuple[List[Field], List[str]]:
        required_cells = 1 if delimited else 2
        fields: List[Field] = []
        errors: List[str] = []
        seen = set()

        for row in format_sheet.rows[FIRST_FIELD_ROW:]:
            if row.is_blank:
                continue
            if row.cell_count < required_cells:
                errors.append(f"Format sheet, row {row.index}: Should have {required_cells} cells.")
                continue

            name = row.cell(0).display_text()
            if not name:
                errors.append(f"Format sheet, row {row.index}: Field name is blank.")
                continue
            if name in seen:
                errors.append(f"Format sheet, row {row.index}: Duplicate field name '{name}'.")
                continue

            width = 0
            if not delimited:
                width_cell = row.cell(1)
                if not width_cell.is_numeric:
                    errors.append(f"Format sheet, row {row.index}: Length cell is not numeric.")
                    continue
                # int() truncates toward zero
                width = int(width_cell.value)
                if width < 0:
                    errors.append(f"Format sheet, row {row.index}: Length cell must not be negative.")
                    continue

            seen.add(name)
            fields.append(Field(name=name, width=width))

        return fields, errors

    @staticmethod
    def validate_data_sheet(data_sheet: Sheet) -> Result[Sheet]:
        """Check that the data sheet has a header row and at least one data row."""
        if data_sheet.row_count < DATA_SHEET_MIN_ROWS:
            return Result.fail(f"Data sheet should have at least {DATA_SHEET_MIN_ROWS} rows.")
        return Result.ok(data_sheet)

    @staticmethod
    def build_column_map(data_sheet: Sheet) -> Dict[str, int]:
        """
        Map each data sheet column header to its zero-based column index.

        A header that appears more than once maps to its last occurrence.
        """
        column_map: Dict[str, int] = {}
        for column, cell in data_sheet.row(0).occupied_cells():
            column_map[cell.display_text()] = column
        return column_map

    @staticmethod
    def validate_data_fields(fields: List[Field], column_map: Dict[str, int]) -> Result[Dict[str, int]]:
        """
        Check that the format fields and the data sheet columns match one to one.

        Both the count check and the per-field lookup always run, so a single
        call reports every mismatch.
        """
        errors: List[str] = []
        if len(fields) != len(column_map):
            errors.append(
                "There should be 1 data column for every format field: "
                f"{len(column_map)} data columns, {len(fields)} format fields."
            )

        for field in fields:
            if field.name not in column_map:
                errors.append(f"There is no data column for field '{field.name}'")

        return Result.from_errors(errors, column_map)

    def render(self, data_sheet: Sheet, options: ExportOptions, column_map: Dict[str, int]) -> Result[bytes]:
        """
        Render every data row into one output line.

        Fixed-width values are right-padded with spaces to the field width and
        never truncated. Delimited values are joined with the delimiter.
        A cell that fails to render is recorded as an error for its row and the
        remaining rows are still rendered; any error fails the whole phase.

        Args:
            data_sheet: The second sheet of the workbook
            options: Export options from the format sheet
            column_map: Column header to column index map

        Returns:
            Result[bytes]: Encoded output text, or every row error
        """
        lines: List[str] = []
        errors: List[str] = []

        for row in data_sheet.rows[1:]:
            if row.is_blank:
                continue
            values = []
            for field in options.fields:
                try:
                    values.append(self._render_value(row, field, options, column_map))
                except Exception as e:
                    logger.debug(f"Failed to render field '{field.name}' in data row {row.index}", exc_info=True)
                    errors.append(f"Data row {row.index}, exception: {str(e)}")

            separator = options.delimiter if options.is_delimited else ""
            lines.append(separator.join(values) + self.line_separator)

        if errors:
            return Result.fail(errors)

        return Result.ok("".join(lines).encode(self.encoding))

    @staticmethod
    def _render_value(row: Row, field: Field, options: ExportOptions, column_map: Dict[str, int]) -> str:
        if field.name not in column_map:
            raise ValueError(f"No data column for field '{field.name}'")
        text = row.cell(column_map[field.name]).display_text()
        if options.is_delimited:
            return text
        return text.ljust(field.width, " ")
