"""Pydantic models shared by the analyzer, the aggregator and the reports.

File and language records carry the three line counts plus the optional
token count; :class:`AnalysisOptions` carries every knob that changes which
files are counted.
"""

from __future__ import annotations

from typing import List, Optional, Set

from pydantic import BaseModel, Field, field_validator


# --- Per-file and per-language results -----------------------------------

class FileRecord(BaseModel):
    path: str
    language: str = ""
    code: int = 0
    comment: int = 0
    blank: int = 0
    tokens: int = 0
    error: Optional[str] = None
    content_hash: Optional[str] = Field(default=None, exclude=True)

    model_config = {"frozen": True}

    @property
    def lines(self) -> int:
        return self.code + self.comment + self.blank


class LanguageRecord(BaseModel):
    name: str
    file_count: int = Field(default=0, serialization_alias="files")
    code: int = 0
    comment: int = 0
    blank: int = 0
    tokens: int = 0

    def add(self, record: FileRecord) -> None:
        self.file_count += 1
        self.code += record.code
        self.comment += record.comment
        self.blank += record.blank
        self.tokens += record.tokens

    def absorb(self, other: "LanguageRecord") -> None:
        self.file_count += other.file_count
        self.code += other.code
        self.comment += other.comment
        self.blank += other.blank
        self.tokens += other.tokens


class AnalysisResult(BaseModel):
    files: List[FileRecord] = Field(default_factory=list)
    languages: List[LanguageRecord] = Field(default_factory=list)
    total: LanguageRecord = Field(default_factory=lambda: LanguageRecord(name="TOTAL"))

    @property
    def errors(self) -> List[FileRecord]:
        return [f for f in self.files if f.error]


# --- Processing options ----------------------------------------------------

# 1 MiB, the largest physical line accepted before a file is abandoned.
MAX_LINE_LENGTH = 1024 * 1024


class AnalysisOptions(BaseModel):
    """Everything that changes which files are counted and how."""

    exclude_ext: Set[str] = Field(default_factory=set)
    include_lang: Set[str] = Field(default_factory=set)
    match: Optional[str] = None
    not_match: Optional[str] = None
    match_dir: Optional[str] = None
    not_match_dir: Optional[str] = None
    skip_duplicated: bool = False
    include_hidden: bool = False
    respect_gitignore: bool = True
    unknown_language: bool = False
    count_tokens: bool = False
    jobs: Optional[int] = None
    max_line_length: int = MAX_LINE_LENGTH

    @field_validator("exclude_ext", mode="before")
    @classmethod
    def _strip_dots(cls, value):
        if value is None:
            return set()
        if isinstance(value, str):
            value = value.split(",")
        return {str(ext).strip().lstrip(".") for ext in value if str(ext).strip()}

    @field_validator("include_lang", mode="before")
    @classmethod
    def _split_languages(cls, value):
        if value is None:
            return set()
        if isinstance(value, str):
            value = value.split(",")
        return {str(lang).strip() for lang in value if str(lang).strip()}

    @field_validator("max_line_length")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_line_length must be positive")
        return value
