"""
Excel Flat File Transformer

This package turns a two-sheet Excel workbook into a flat text file.
The first sheet declares the export type (fixed length or delimited),
the delimiter and the ordered output fields; the second sheet holds the data.

Key modules:
- main.py: FastAPI application with the upload endpoint
- file_transformer.py: Validation phases and rendering
- export_options.py: Field and ExportOptions models
- workbook.py: Reads workbook bytes into sheets, rows and cells
- utils/cell.py: Cell values and their display text
- utils/result.py: Result pattern implementation for error handling
"""
