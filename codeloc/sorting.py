"""Ordering of result collections.

Every key sorts descending except ``name``; ties fall back to descending
code count unless the key already is the code count.  Sorting is stable,
so records that tie on both keys keep their incoming order.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple, Union

from .models import AnalysisResult, FileRecord, LanguageRecord

__all__ = ["SortKey", "sort_files", "sort_languages", "sort_result"]

Record = Union[FileRecord, LanguageRecord]


class SortKey(str, Enum):
    NAME = "name"
    FILES = "files"
    BLANK = "blank"
    COMMENT = "comment"
    CODE = "code"
    TOKENS = "tokens"


def _name(record: Record) -> str:
    return record.path if isinstance(record, FileRecord) else record.name


_KEYS: Dict[SortKey, Callable[[Record], Tuple]] = {
    SortKey.NAME: lambda r: (_name(r),),
    SortKey.FILES: lambda r: (-r.file_count, -r.code),
    SortKey.BLANK: lambda r: (-r.blank, -r.code),
    SortKey.COMMENT: lambda r: (-r.comment, -r.code),
    SortKey.CODE: lambda r: (-r.code,),
    SortKey.TOKENS: lambda r: (-r.tokens, -r.code),
}


def _sorted(records: Sequence[Record], key: Union[SortKey, str]) -> List:
    return sorted(records, key=_KEYS[SortKey(key)])


def sort_languages(
    languages: Sequence[LanguageRecord], key: Union[SortKey, str] = SortKey.CODE
) -> List[LanguageRecord]:
    return _sorted(languages, key)


def sort_files(
    files: Sequence[FileRecord], key: Union[SortKey, str] = SortKey.CODE
) -> List[FileRecord]:
    if SortKey(key) is SortKey.FILES:
        raise ValueError("files cannot be sorted by file count")
    return _sorted(files, key)


def sort_result(
    result: AnalysisResult, key: Union[SortKey, str] = SortKey.CODE
) -> AnalysisResult:
    """Return a copy of *result* with both collections ordered by *key*.

    Files keep path order when *key* is ``files``.
    """
    files = result.files if SortKey(key) is SortKey.FILES else sort_files(result.files, key)
    return AnalysisResult(
        files=files,
        languages=sort_languages(result.languages, key),
        total=result.total,
    )
