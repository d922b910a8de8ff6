"""Render an :class:`~codeloc.models.AnalysisResult` for humans or tools.

Each output type is a small renderer class chosen once per run through
:func:`get_renderer`:

* ``default``   – fixed-width text table with a TOTAL footer;
* ``cloc-xml``  – the XML layout produced by *cloc --xml*;
* ``sloccount`` – one tab-separated line per file, as *sloccount* prints;
* ``json``      – a compact JSON document.

Renderers never reorder anything; pass a result through
:func:`codeloc.sorting.sort_result` first.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, List, Type

from pydantic import BaseModel, Field

from .models import AnalysisResult, FileRecord, LanguageRecord

__all__ = [
    "Renderer",
    "TableRenderer",
    "ClocXmlRenderer",
    "SloccountRenderer",
    "JsonRenderer",
    "RENDERERS",
    "get_renderer",
]

SEPARATOR_CHAR = "-"
LANGUAGE_HEADER = "Language"
FILE_HEADER = "File"
COMMON_HEADER = "files          blank        comment           code"
TOKENS_HEADER = "           tokens"


class Renderer:
    """Base class; subclasses turn a result into a single string."""

    name = ""

    def __init__(self, *, by_file: bool = False, show_tokens: bool = False):
        self.by_file = by_file
        self.show_tokens = show_tokens

    def render(self, result: AnalysisResult) -> str:  # pragma: no cover - abstract
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Text table
# ---------------------------------------------------------------------------


class TableRenderer(Renderer):
    name = "default"

    def render(self, result: AnalysisResult) -> str:
        header = COMMON_HEADER + (TOKENS_HEADER if self.show_tokens else "")
        if self.by_file:
            width = max((len(f.path) for f in result.files), default=len(FILE_HEADER))
            width = max(width, len("TOTAL"))
            title = f"{FILE_HEADER:<{width + 1}} {header}"
            rows = [self._file_row(f, width) for f in result.files]
            footer = self._total_row(result.total, width)
            row_len = width + len(header) + 2
        else:
            title = f"{LANGUAGE_HEADER:<28} {header}"
            rows = [self._language_row(lang) for lang in result.languages]
            footer = self._total_row(result.total, 27)
            row_len = 96 if self.show_tokens else 79

        separator = SEPARATOR_CHAR * row_len
        lines = [separator, title, separator, *rows, separator, footer, separator]
        return "\n".join(lines) + "\n"

    def _tail(self, record) -> str:
        return f" {record.tokens:>14}" if self.show_tokens else ""

    def _language_row(self, lang: LanguageRecord) -> str:
        return (
            f"{lang.name:<27} {lang.file_count:>6} {lang.blank:>14} "
            f"{lang.comment:>14} {lang.code:>14}" + self._tail(lang)
        )

    def _file_row(self, record: FileRecord, width: int) -> str:
        return (
            f"{record.path:<{width}} {record.blank:>21} {record.comment:>14} "
            f"{record.code:>14}" + self._tail(record)
        )

    def _total_row(self, total: LanguageRecord, width: int) -> str:
        return (
            f"{'TOTAL':<{width}} {total.file_count:>6} {total.blank:>14} "
            f"{total.comment:>14} {total.code:>14}" + self._tail(total)
        )


# ---------------------------------------------------------------------------
# cloc XML
# ---------------------------------------------------------------------------


class ClocXmlRenderer(Renderer):
    name = "cloc-xml"

    def render(self, result: AnalysisResult) -> str:
        root = ET.Element("results")
        total = result.total

        if self.by_file:
            files_el = ET.SubElement(root, "files")
            for record in result.files:
                ET.SubElement(
                    files_el,
                    "file",
                    name=record.path,
                    language=record.language,
                    code=str(record.code),
                    comment=str(record.comment),
                    blank=str(record.blank),
                )
            ET.SubElement(
                files_el,
                "total",
                code=str(total.code),
                comment=str(total.comment),
                blank=str(total.blank),
            )
        else:
            langs_el = ET.SubElement(root, "languages")
            for lang in result.languages:
                ET.SubElement(
                    langs_el,
                    "language",
                    name=lang.name,
                    files_count=str(lang.file_count),
                    code=str(lang.code),
                    comment=str(lang.comment),
                    blank=str(lang.blank),
                )
            ET.SubElement(
                langs_el,
                "total",
                sum_files=str(total.file_count),
                code=str(total.code),
                comment=str(total.comment),
                blank=str(total.blank),
            )

        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="unicode")
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"


# ---------------------------------------------------------------------------
# sloccount
# ---------------------------------------------------------------------------


def _top_directory(path: str) -> str:
    """Second path component of "./pkg/x.py" or "/pkg/x.py", else ""."""
    if not (path.startswith("./") or path.startswith("/")):
        return ""
    parts = path.split("/")
    return parts[1] if len(parts) >= 3 else ""


class SloccountRenderer(Renderer):
    name = "sloccount"

    def render(self, result: AnalysisResult) -> str:
        lines = [
            f"{f.code}\t{f.language}\t{_top_directory(f.path)}\t{f.path}"
            for f in result.files
        ]
        return "\n".join(lines) + ("\n" if lines else "")


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class JsonTotal(BaseModel):
    files: int
    code: int
    comment: int
    blank: int
    tokens: int


class JsonLanguage(JsonTotal):
    name: str


class JsonFile(BaseModel):
    name: str
    language: str
    code: int
    comment: int
    blank: int
    tokens: int


class JsonLanguagesReport(BaseModel):
    languages: List[JsonLanguage] = Field(default_factory=list)
    total: JsonTotal


class JsonFilesReport(BaseModel):
    files: List[JsonFile] = Field(default_factory=list)
    total: JsonTotal


def _json_total(total: LanguageRecord) -> JsonTotal:
    return JsonTotal(
        files=total.file_count,
        code=total.code,
        comment=total.comment,
        blank=total.blank,
        tokens=total.tokens,
    )


class JsonRenderer(Renderer):
    name = "json"

    def render(self, result: AnalysisResult) -> str:
        report: BaseModel
        if self.by_file:
            report = JsonFilesReport(
                files=[
                    JsonFile(
                        name=f.path,
                        language=f.language,
                        code=f.code,
                        comment=f.comment,
                        blank=f.blank,
                        tokens=f.tokens,
                    )
                    for f in result.files
                ],
                total=_json_total(result.total),
            )
        else:
            report = JsonLanguagesReport(
                languages=[
                    JsonLanguage(
                        name=lang.name,
                        files=lang.file_count,
                        code=lang.code,
                        comment=lang.comment,
                        blank=lang.blank,
                        tokens=lang.tokens,
                    )
                    for lang in result.languages
                ],
                total=_json_total(result.total),
            )
        return report.model_dump_json() + "\n"


RENDERERS: Dict[str, Type[Renderer]] = {
    cls.name: cls
    for cls in (TableRenderer, ClocXmlRenderer, SloccountRenderer, JsonRenderer)
}


def get_renderer(output_type: str, *, by_file: bool = False, show_tokens: bool = False) -> Renderer:
    try:
        renderer_cls = RENDERERS[output_type]
    except KeyError:
        raise ValueError(
            f"unknown output type {output_type!r}; expected one of: {', '.join(RENDERERS)}"
        ) from None
    return renderer_cls(by_file=by_file, show_tokens=show_tokens)
