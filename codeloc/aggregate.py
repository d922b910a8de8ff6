"""Fold per-file results into per-language and grand totals.

Totals are plain sums, so the order in which files arrive (for example from
a process pool) has no effect on the result.  :meth:`Aggregator.result`
returns files ordered by path and languages ordered by name; any other
ordering is up to :mod:`codeloc.sorting`.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from .models import AnalysisResult, FileRecord, LanguageRecord

__all__ = ["Aggregator", "aggregate"]


class Aggregator:
    def __init__(self) -> None:
        self._files: List[FileRecord] = []
        self._languages: Dict[str, LanguageRecord] = {}
        self._total = LanguageRecord(name="TOTAL")

    def add(self, record: FileRecord) -> None:
        language = self._languages.get(record.language)
        if language is None:
            language = self._languages[record.language] = LanguageRecord(name=record.language)
        language.add(record)
        self._total.add(record)
        self._files.append(record)

    def merge(self, other: "Aggregator") -> "Aggregator":
        """Return a new aggregator holding the files of *self* and *other*."""
        merged = Aggregator()
        for source in (self, other):
            merged._files.extend(source._files)
            for name, language in source._languages.items():
                target = merged._languages.get(name)
                if target is None:
                    target = merged._languages[name] = LanguageRecord(name=name)
                target.absorb(language)
            merged._total.absorb(source._total)
        return merged

    def result(self) -> AnalysisResult:
        return AnalysisResult(
            files=sorted(self._files, key=lambda f: (f.path, f.language)),
            languages=[
                self._languages[name].model_copy() for name in sorted(self._languages)
            ],
            total=self._total.model_copy(),
        )


def aggregate(records: Iterable[FileRecord]) -> AnalysisResult:
    aggregator = Aggregator()
    for record in records:
        aggregator.add(record)
    return aggregator.result()
