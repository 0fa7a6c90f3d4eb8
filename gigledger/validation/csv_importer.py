"""
CSV Import Validation

DESIGN DECISION: An import file is checked completely on the client
before anything is uploaded:

FILE CHECKS:
- Declared MIME type is a CSV type
- Size limit
- Text decodes as UTF-8 (a BOM is ignored)
- At least a header and one data row

ROW CHECKS:
- `amount` parses as a number and is greater than zero
- `type` is credit or debit (any case)
- `taxpercentage`, when the column exists, is empty or a number

Every problem is collected, not only the first one, so the user can fix
the file in one go. Validation NEVER modifies the file: on success the
original bytes are uploaded unchanged.
"""

import csv
import io
from typing import Optional

from gigledger.config import get_settings
from gigledger.models.common import to_decimal
from gigledger.models.imports import CsvIssue, CsvValidationResult
from gigledger.models.ledger import TransactionType


ACCEPTED_MIME_TYPES = frozenset({
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
})
REQUIRED_COLUMNS = ("amount", "type")
TAX_COLUMN = "taxpercentage"


class CsvImportError(Exception):
    """Raised when an import file is rejected before upload."""

    def __init__(self, result: CsvValidationResult):
        self.result = result
        super().__init__(result.error_message or "Invalid CSV file")


def is_csv_mime_type(mime_type: Optional[str], filename: str) -> bool:
    """True for CSV MIME types, and for text/plain files named *.csv."""
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime in ACCEPTED_MIME_TYPES:
        return True
    return mime == "text/plain" and filename.lower().endswith(".csv")


def _normalize_header(cell: str) -> str:
    return cell.strip().lstrip("\ufeff").strip().lower()


class TransactionCsvValidator:
    """
    Validates a transaction CSV before it is uploaded.

    Usage:
        result = TransactionCsvValidator().validate(content, "march.csv", "text/csv")
        if not result.is_valid:
            show(result.error_message)
    """

    def __init__(self, max_size_bytes: Optional[int] = None):
        self._max_size_bytes = max_size_bytes or get_settings().app.max_csv_upload_size_bytes

    def validate(
        self,
        content: bytes,
        filename: str,
        mime_type: Optional[str],
    ) -> CsvValidationResult:
        """
        Check a file and report every problem found.

        Args:
            content: Raw file bytes
            filename: Name the user picked, used for the text/plain case
            mime_type: MIME type declared by the browser/uploader

        Returns:
            CsvValidationResult; `is_valid` tells whether it may be uploaded
        """
        result = CsvValidationResult(filename=filename, mime_type=mime_type)

        if not is_csv_mime_type(mime_type, filename):
            result.issues.append(CsvIssue(
                field="file",
                issue_type="invalid_type",
                message=f"Please upload a CSV file (got {mime_type or 'unknown type'})",
            ))
            return result

        if len(content) > self._max_size_bytes:
            result.issues.append(CsvIssue(
                field="file",
                issue_type="too_large",
                message=f"File is larger than {self._max_size_bytes // (1024 * 1024)} MB",
            ))
            return result

        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            result.issues.append(CsvIssue(
                field="file",
                issue_type="invalid_encoding",
                message="File is not UTF-8 text",
            ))
            return result

        # Keep physical line numbers: blank lines are skipped but still counted.
        reader = csv.reader(io.StringIO(text, newline=""))
        rows: list[tuple[int, list[str]]] = []
        try:
            for cells in reader:
                if any(cell.strip() for cell in cells):
                    rows.append((reader.line_num, cells))
        except csv.Error as e:
            result.issues.append(CsvIssue(
                row=reader.line_num or None,
                field="file",
                issue_type="malformed",
                message=f"Malformed CSV: {e}",
            ))
            return result

        if len(rows) < 2:
            result.issues.append(CsvIssue(
                field="file",
                issue_type="too_short",
                message="CSV must have a header row and at least one data row",
            ))
            return result

        header_line, header_cells = rows[0]
        header = [_normalize_header(cell) for cell in header_cells]
        result.header = header
        result.data_row_count = len(rows) - 1

        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            result.issues.append(CsvIssue(
                row=header_line,
                field="header",
                issue_type="missing_column",
                message=f"CSV header must contain: {', '.join(missing)}",
            ))
            return result

        columns = {
            name: header.index(name)
            for name in (*REQUIRED_COLUMNS, TAX_COLUMN)
            if name in header
        }
        for line_number, cells in rows[1:]:
            result.issues.extend(self._validate_row(line_number, cells, columns))

        return result

    def validate_or_raise(
        self,
        content: bytes,
        filename: str,
        mime_type: Optional[str],
    ) -> CsvValidationResult:
        """
        Same as validate() but raises on a rejected file.

        Raises:
            CsvImportError: If any error was found
        """
        result = self.validate(content, filename, mime_type)
        if not result.is_valid:
            raise CsvImportError(result)
        return result

    def _validate_row(
        self,
        line_number: int,
        cells: list[str],
        columns: dict[str, int],
    ) -> list[CsvIssue]:
        issues = []

        def cell(name: str) -> str:
            index = columns[name]
            return cells[index].strip() if index < len(cells) else ""

        raw_amount = cell("amount")
        amount = to_decimal(raw_amount) if raw_amount else None
        if amount is None:
            issues.append(CsvIssue(
                row=line_number,
                field="amount",
                issue_type="invalid_number",
                message=f"amount '{raw_amount}' is not a number",
            ))
        elif amount <= 0:
            issues.append(CsvIssue(
                row=line_number,
                field="amount",
                issue_type="invalid_value",
                message=f"amount must be greater than zero (got {raw_amount})",
            ))

        raw_type = cell("type")
        if raw_type.lower() not in {t.value for t in TransactionType}:
            issues.append(CsvIssue(
                row=line_number,
                field="type",
                issue_type="invalid_value",
                message=f"type must be 'credit' or 'debit' (got '{raw_type}')",
            ))

        if TAX_COLUMN in columns:
            raw_tax = cell(TAX_COLUMN)
            if raw_tax and to_decimal(raw_tax) is None:
                issues.append(CsvIssue(
                    row=line_number,
                    field=TAX_COLUMN,
                    issue_type="invalid_number",
                    message=f"taxPercentage '{raw_tax}' is not a number",
                ))

        return issues
