"""
CSV Import Validation Models

Row numbers are file line numbers counted from 1, with the header on
row 1, so the first data row is row 2. That matches what a user sees
in a spreadsheet.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CsvIssue(BaseModel):
    """A single problem found in an import file."""

    row: Optional[int] = Field(
        default=None,
        ge=1,
        description="1-indexed line number, None for file-level problems"
    )
    field: str = Field(
        ...,
        description="Column or aspect with the problem (e.g. 'amount', 'file')"
    )
    issue_type: str = Field(
        ...,
        description="Kind of problem (e.g. 'invalid_number', 'missing_column')"
    )
    message: str = Field(
        ...,
        description="Human-readable description"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class CsvValidationResult(BaseModel):
    """Outcome of validating an import file before upload."""

    filename: str
    mime_type: Optional[str] = None
    header: list[str] = Field(default_factory=list)
    data_row_count: int = Field(default=0, ge=0)
    issues: list[CsvIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[CsvIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_rows(self) -> list[int]:
        """Distinct failing rows in file order."""
        return sorted({issue.row for issue in self.errors if issue.row is not None})

    @property
    def error_message(self) -> Optional[str]:
        """
        The message shown to the user, None when the file is valid.

        Only the first problem is shown, with a count of the rest.
        """
        errors = self.errors
        if not errors:
            return None
        first = errors[0]
        if first.row is not None:
            text = f"Row {first.row}: {first.message}"
        else:
            text = first.message
        if len(errors) > 1:
            text += f" ({len(errors) - 1} more problem{'s' if len(errors) > 2 else ''} found)"
        return text
