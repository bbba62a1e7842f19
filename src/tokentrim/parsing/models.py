"""Pydantic models for structured tool outputs.

Each model validates one item of a tool's JSON output and knows how to turn
itself into records. The JSON Schemas of these models also feed the
streaming registry, so the same definition validates both dialects.
"""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from tokentrim.models import Location, Record, RecordKind

# =============================================================================
# MYPY OUTPUT MODELS
# =============================================================================


class MypyJsonOutput(BaseModel):
    """Official mypy JSON output schema (mypy 1.13+).

    ``mypy --output json`` prints one of these objects per line. The format
    is documented in mypy PR #11396.
    """

    file: str
    line: int  # 1-indexed
    column: int  # 0-indexed
    message: str
    hint: str | None = None
    code: str | None = None
    severity: Literal["error", "note"]

    @field_validator("line", mode="before")
    @classmethod
    def ensure_positive_line(cls, v: int) -> int:
        """Ensure line number is at least 1."""
        return max(1, v) if v else 1

    @field_validator("column", mode="before")
    @classmethod
    def ensure_non_negative_column(cls, v: int) -> int:
        """Ensure column is at least 0."""
        return max(0, v) if v else 0

    def to_record(self) -> Record:
        """Convert to a record; notes become INFO records."""
        message = self.message
        if self.hint:
            message = f"{message} ({self.hint})"
        return Record(
            kind=RecordKind.INFO if self.severity == "note" else RecordKind.ERROR,
            location=Location(file=self.file, line=self.line, column=self.column),
            code=self.code,
            message=message,
        )

    def to_records(self) -> list[Record]:
        """Records described by this item."""
        return [self.to_record()]


def get_mypy_json_schema() -> dict[str, object]:
    """Get the JSON Schema for one mypy output line."""
    return MypyJsonOutput.model_json_schema()


# =============================================================================
# RUFF OUTPUT MODELS
# =============================================================================


class RuffPosition(BaseModel):
    """Row/column pair used by ruff (both 1-indexed)."""

    row: int
    column: int


class RuffDiagnostic(BaseModel):
    """One item of ``ruff check --output-format json``.

    ``code`` is null for syntax errors.
    """

    code: str | None = None
    message: str
    filename: str
    location: RuffPosition
    end_location: RuffPosition | None = None
    url: str | None = None

    def to_records(self) -> list[Record]:
        """Records described by this item."""
        return [
            Record(
                kind=RecordKind.ERROR,
                location=Location(
                    file=self.filename, line=self.location.row, column=self.location.column
                ),
                code=self.code or "syntax-error",
                message=self.message,
            )
        ]


# =============================================================================
# ESLINT OUTPUT MODELS
# =============================================================================


class EslintMessage(BaseModel):
    """One message inside an ESLint file result."""

    rule_id: str | None = Field(default=None, alias="ruleId")
    severity: Literal[0, 1, 2]
    message: str
    line: int | None = None
    column: int | None = None
    fatal: bool = False


class EslintFileResult(BaseModel):
    """One item of ``eslint --format json``: a file and its messages."""

    file_path: str = Field(alias="filePath")
    messages: list[EslintMessage] = Field(default_factory=list)
    error_count: int = Field(default=0, alias="errorCount")
    warning_count: int = Field(default=0, alias="warningCount")

    def to_records(self) -> list[Record]:
        """One record per message; severity 2 (or fatal) is an error."""
        records: list[Record] = []
        for msg in self.messages:
            if msg.severity == 0 and not msg.fatal:
                continue
            kind = RecordKind.ERROR if msg.fatal or msg.severity == 2 else RecordKind.WARNING
            records.append(
                Record(
                    kind=kind,
                    location=Location(file=self.file_path, line=msg.line, column=msg.column),
                    code=msg.rule_id or ("parse-error" if msg.fatal else None),
                    message=msg.message,
                )
            )
        return records


# =============================================================================
# GENERIC DIAGNOSTIC MODEL
# =============================================================================


class GenericDiagnostic(BaseModel):
    """Loosely-named diagnostic object used by the generic structured profile.

    Accepts the common spellings tools use for the same fields
    (``file``/``path``/``filename``, ``line``/``row``, ...).
    """

    model_config = ConfigDict(populate_by_name=True)

    file: str | None = Field(
        default=None, validation_alias=AliasChoices("file", "path", "filename", "filePath")
    )
    line: int | None = Field(default=None, validation_alias=AliasChoices("line", "row", "lineno"))
    column: int | None = Field(default=None, validation_alias=AliasChoices("column", "col"))
    code: str | None = Field(
        default=None, validation_alias=AliasChoices("code", "rule", "ruleId", "check_id")
    )
    message: str = Field(validation_alias=AliasChoices("message", "msg", "text", "description"))
    severity: str | None = Field(default=None, validation_alias=AliasChoices("severity", "level", "type"))

    @field_validator("code", "severity", mode="before")
    @classmethod
    def stringify(cls, v: object) -> str | None:
        """Some tools use numeric codes and severities."""
        return None if v is None else str(v)

    def to_records(self) -> list[Record]:
        """Records described by this item."""
        kind = RecordKind.ERROR
        if self.severity is not None:
            kind = _GENERIC_SEVERITIES.get(self.severity.lower(), RecordKind.ERROR)
        location = Location(file=self.file, line=self.line, column=self.column) if self.file else None
        return [Record(kind=kind, location=location, code=self.code, message=self.message)]


_GENERIC_SEVERITIES: dict[str, RecordKind] = {
    "warning": RecordKind.WARNING,
    "warn": RecordKind.WARNING,
    "1": RecordKind.WARNING,
    "note": RecordKind.INFO,
    "info": RecordKind.INFO,
    "hint": RecordKind.INFO,
    "0": RecordKind.INFO,
}
