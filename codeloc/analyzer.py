"""Central analysis engine shared by the CLI and library callers.

The public entry-points are :func:`analyze_reader` (one stream, known
grammar), :func:`analyze_file` (one path, language resolved here) and
:class:`Processor`, which expands paths into files, classifies them
(sequentially or in a process pool) and folds the records into an
:class:`~codeloc.models.AnalysisResult`.
"""

from __future__ import annotations

import hashlib
import io
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Set, Union

from .aggregate import Aggregator
from .classifier import LineClassifier, LineObservers
from .errors import FileUnreadableError, LineTooLongError
from .languages import (
    DEFAULT_REGISTRY,
    UNKNOWN_GRAMMAR,
    UNKNOWN_LANGUAGE,
    Grammar,
    LanguageRegistry,
)
from .models import MAX_LINE_LENGTH, AnalysisOptions, AnalysisResult, FileRecord
from .resolver import LanguageResolver
from .tokens import TokenCounter
from .walker import PathFilter, collect_files

__all__ = [
    "iter_lines",
    "analyze_reader",
    "analyze_file",
    "LanguageFilter",
    "FileAnalyzer",
    "Processor",
    "PARALLEL_THRESHOLD",
]

# Batches smaller than this are classified in-process.
PARALLEL_THRESHOLD = 50


# ---------------------------------------------------------------------------
# Single stream / single file
# ---------------------------------------------------------------------------


def iter_lines(stream: BinaryIO, max_line_length: int = MAX_LINE_LENGTH) -> Iterator[str]:
    """Yield decoded physical lines of *stream* without line terminators.

    Lines are split on ``\\n`` only; a trailing ``\\r`` is dropped.  Raises
    :class:`LineTooLongError` on the first line longer than
    *max_line_length* bytes.
    """
    line_number = 0
    while True:
        raw = stream.readline(max_line_length + 1)
        if not raw:
            return
        line_number += 1
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if len(raw) > max_line_length:
            raise LineTooLongError(line_number, max_line_length)
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        yield raw.decode("utf-8", errors="replace")


def analyze_reader(
    path: Union[str, Path],
    grammar: Grammar,
    stream: BinaryIO,
    *,
    observers: Optional[LineObservers] = None,
    max_line_length: int = MAX_LINE_LENGTH,
) -> FileRecord:
    """Classify every line of *stream* with *grammar*.

    An over-long line stops the classification; the counts gathered so far
    are kept and the record's ``error`` explains why it is incomplete.
    """
    classifier = LineClassifier(grammar, observers)
    error: Optional[str] = None
    try:
        for line in iter_lines(stream, max_line_length):
            classifier.classify(line)
    except LineTooLongError as exc:
        error = str(exc)

    counts = classifier.counts
    return FileRecord(
        path=str(path),
        language=grammar.name,
        code=counts.code,
        comment=counts.comment,
        blank=counts.blank,
        error=error,
    )


class LanguageFilter:
    """Include/exclude rules applied to resolved languages."""

    def __init__(
        self,
        registry: LanguageRegistry = DEFAULT_REGISTRY,
        exclude_ext: Iterable[str] = (),
        include_lang: Iterable[str] = (),
    ):
        self.exclude_ext: Set[str] = {ext.lstrip(".") for ext in exclude_ext}
        self.exclude_lang: Set[str] = {
            registry.extensions[ext] for ext in self.exclude_ext if ext in registry.extensions
        }
        self.include_lang: Set[str] = {lang for lang in include_lang if lang in registry}

    def accepts(self, path: Path, language: str) -> bool:
        ext = path.suffix[1:]
        if ext in self.exclude_ext or language in self.exclude_ext:
            return False
        if language in self.exclude_lang:
            return False
        if self.include_lang and language not in self.include_lang:
            return False
        return True


def analyze_file(
    path: Union[str, Path],
    resolver: Optional[LanguageResolver] = None,
    *,
    language_filter: Optional[LanguageFilter] = None,
    unknown_language: bool = False,
    token_counter: Optional[TokenCounter] = None,
    observers: Optional[LineObservers] = None,
    max_line_length: int = MAX_LINE_LENGTH,
) -> Optional[FileRecord]:
    """Resolve, classify and measure one file.

    Returns *None* when the file is filtered out or its language cannot be
    resolved (unless *unknown_language* buckets it under ``Unknown``).  An
    unreadable file yields a zero-count record carrying the error.
    """
    path = Path(path)
    resolver = resolver or LanguageResolver()
    registry = resolver.registry

    content: Optional[bytes] = None
    read_error: Optional[FileUnreadableError] = None
    try:
        content = path.read_bytes()
    except OSError as exc:
        read_error = FileUnreadableError(path, exc.strerror or str(exc))

    identifier = resolver.resolve(path, content)
    grammar = registry.lookup(identifier) if identifier else None
    if grammar is None:
        if not unknown_language:
            return None
        grammar = UNKNOWN_GRAMMAR

    if language_filter is not None and not language_filter.accepts(path, grammar.name):
        return None

    if read_error is not None or content is None:
        return FileRecord(path=str(path), language=grammar.name, error=str(read_error))

    record = analyze_reader(
        path,
        grammar,
        io.BytesIO(content),
        observers=observers,
        max_line_length=max_line_length,
    )

    updates = {"content_hash": hashlib.sha256(content).hexdigest()}
    if token_counter is not None:
        updates["tokens"] = token_counter.count(path, content.decode("utf-8", errors="replace"))
    return record.model_copy(update=updates)


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


class FileAnalyzer:
    """Picklable callable bundling everything :func:`analyze_file` needs."""

    def __init__(
        self,
        resolver: LanguageResolver,
        options: AnalysisOptions,
        observers: Optional[LineObservers] = None,
    ):
        self.resolver = resolver
        self.language_filter = LanguageFilter(
            resolver.registry, options.exclude_ext, options.include_lang
        )
        self.unknown_language = options.unknown_language
        self.token_counter = TokenCounter() if options.count_tokens else None
        self.observers = observers
        self.max_line_length = options.max_line_length

    def __call__(self, path: Path) -> Optional[FileRecord]:
        return analyze_file(
            path,
            self.resolver,
            language_filter=self.language_filter,
            unknown_language=self.unknown_language,
            token_counter=self.token_counter,
            observers=self.observers,
            max_line_length=self.max_line_length,
        )


class Processor:
    """Count lines for a set of paths."""

    def __init__(
        self,
        registry: LanguageRegistry = DEFAULT_REGISTRY,
        options: Optional[AnalysisOptions] = None,
        *,
        resolver: Optional[LanguageResolver] = None,
        observers: Optional[LineObservers] = None,
    ):
        self.registry = registry
        self.options = options or AnalysisOptions()
        self.resolver = resolver or LanguageResolver(registry)
        self.observers = observers
        # Raises re.error on a bad pattern.
        self.path_filter = PathFilter(
            match=self.options.match,
            not_match=self.options.not_match,
            match_dir=self.options.match_dir,
            not_match_dir=self.options.not_match_dir,
        )

    def collect(self, paths: Iterable[Union[str, Path]]) -> List[Path]:
        return collect_files(
            paths,
            include_hidden=self.options.include_hidden,
            respect_gitignore=self.options.respect_gitignore,
            path_filter=self.path_filter,
        )

    def analyze(self, paths: Iterable[Union[str, Path]]) -> AnalysisResult:
        files = self.collect(paths)
        records = self._classify(files)

        aggregator = Aggregator()
        seen_hashes: Set[str] = set()
        for record in sorted(records, key=lambda r: r.path):
            if self.options.skip_duplicated and record.content_hash:
                if record.content_hash in seen_hashes:
                    continue
                seen_hashes.add(record.content_hash)
            aggregator.add(record)
        return aggregator.result()

    def _classify(self, files: List[Path]) -> List[FileRecord]:
        analyzer = FileAnalyzer(self.resolver, self.options, self.observers)

        sequential = (
            len(files) < PARALLEL_THRESHOLD
            or self.options.jobs == 1
            or self.observers is not None
        )
        if sequential:
            results = [analyzer(path) for path in files]
        else:
            with ProcessPoolExecutor(max_workers=self.options.jobs) as executor:
                results = list(executor.map(analyzer, files, chunksize=16))

        return [record for record in results if record is not None]
