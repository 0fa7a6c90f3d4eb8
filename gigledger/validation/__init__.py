"""Client-side validation of files before they are uploaded."""

from gigledger.validation.csv_importer import (
    ACCEPTED_MIME_TYPES,
    CsvImportError,
    TransactionCsvValidator,
    is_csv_mime_type,
)

__all__ = [
    "ACCEPTED_MIME_TYPES",
    "CsvImportError",
    "TransactionCsvValidator",
    "is_csv_mime_type",
]
