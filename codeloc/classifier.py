"""Line classification state machine.

:class:`LineClassifier` walks the physical lines of one file and labels each
one *blank*, *comment* or *code* according to a :class:`Grammar`.  Open
multi-line comments are tracked on a stack that carries over from one line
to the next, so a classifier instance must see the lines of a file in order
and must not be reused for another file without :meth:`reset`.

Rules, in order of precedence:

1. A line that is empty once whitespace is stripped is blank, even inside an
   open multi-line comment.
2. The first non-blank line is code if it is a shebang (``#!``).
3. Outside a comment, a line starting with a single-line prefix is a comment
   unless it also starts with a multi-line opener.
4. Lines holding no multi-line opener (and not inside a comment) are code.
5. Everything else is scanned character by character; the line is code only
   if *every* multi-line pair saw non-whitespace outside of comments.
"""

from __future__ import annotations

from collections import namedtuple
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from .languages import Grammar

__all__ = [
    "LineKind",
    "LineCounts",
    "LineObservers",
    "LineClassifier",
    "classify_lines",
]

BOM = "\ufeff"


class LineKind(str, Enum):
    BLANK = "blank"
    COMMENT = "comment"
    CODE = "code"


# Optional per-line callbacks; each receives the un-trimmed line text.
LineObservers = namedtuple(
    "LineObservers", ["on_code", "on_comment", "on_blank"], defaults=(None, None, None)
)


class LineCounts:
    """Mutable tally filled in while a file is being classified."""

    __slots__ = ("code", "comment", "blank")

    def __init__(self, code: int = 0, comment: int = 0, blank: int = 0):
        self.code = code
        self.comment = comment
        self.blank = blank

    @property
    def total(self) -> int:
        return self.code + self.comment + self.blank

    def add(self, kind: LineKind) -> None:
        if kind is LineKind.CODE:
            self.code += 1
        elif kind is LineKind.COMMENT:
            self.comment += 1
        else:
            self.blank += 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineCounts):
            return NotImplemented
        return (self.code, self.comment, self.blank) == (other.code, other.comment, other.blank)

    def __repr__(self) -> str:
        return f"LineCounts(code={self.code}, comment={self.comment}, blank={self.blank})"


class LineClassifier:
    """Classify the lines of a single file one at a time."""

    def __init__(self, grammar: Grammar, observers: Optional[LineObservers] = None):
        self.grammar = grammar
        self.observers = observers or LineObservers()
        self.counts = LineCounts()
        self._stack: List[Tuple[str, str]] = []
        self._first_line = True

    @property
    def in_comment(self) -> bool:
        return bool(self._stack)

    @property
    def stack(self) -> Tuple[Tuple[str, str], ...]:
        """Currently open ``(begin, end)`` pairs, innermost last."""
        return tuple(self._stack)

    def reset(self) -> None:
        self.counts = LineCounts()
        self._stack = []
        self._first_line = True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, raw_line: str) -> LineKind:
        """Classify *raw_line*, update the counts and notify observers."""
        kind = self._classify(raw_line)
        self.counts.add(kind)

        callback: Optional[Callable[[str], None]]
        if kind is LineKind.CODE:
            callback = self.observers.on_code
        elif kind is LineKind.COMMENT:
            callback = self.observers.on_comment
        else:
            callback = self.observers.on_blank
        if callback is not None:
            callback(raw_line)
        return kind

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _classify(self, raw_line: str) -> LineKind:
        line = raw_line.strip()
        if not line:
            return LineKind.BLANK

        first_line = self._first_line
        self._first_line = False

        if first_line and line.startswith("#!"):
            return LineKind.CODE

        grammar = self.grammar
        if not self._stack:
            if first_line and line.startswith(BOM):
                line = line[len(BOM):].lstrip()
                if not line:
                    return LineKind.CODE

            if self._is_line_comment(line):
                return LineKind.COMMENT

            if not grammar.multi_lines:
                return LineKind.CODE

            if not any(begin in line for begin in grammar.begin_delimiters):
                return LineKind.CODE

        if grammar.multi_line_disabled:
            return LineKind.CODE

        return self._scan(line)

    def _is_line_comment(self, line: str) -> bool:
        for prefix in self.grammar.line_comments:
            if line.startswith(prefix):
                # e.g. Lua "--" must not swallow a "--[[" block opener
                return not any(
                    line.startswith(begin) for begin in self.grammar.begin_delimiters
                )
        return False

    def _scan(self, line: str) -> LineKind:
        pairs = self.grammar.multi_lines
        stack = self._stack
        witnessed = [False] * len(pairs)
        length = len(line)
        pos = 0

        while pos < length:
            for idx, (begin, end) in enumerate(pairs):
                if begin and line.startswith(begin, pos) and (begin != end or not stack):
                    stack.append((begin, end))
                    pos += len(begin)
                    break

                if stack:
                    closing = stack[-1][1]
                    if closing and line.startswith(closing, pos):
                        stack.pop()
                        pos += len(closing)
                        break
                elif not line[pos].isspace():
                    witnessed[idx] = True
            else:
                pos += 1

        return LineKind.CODE if all(witnessed) else LineKind.COMMENT


def classify_lines(
    lines: Iterable[str],
    grammar: Grammar,
    observers: Optional[LineObservers] = None,
) -> LineCounts:
    """Classify every line of *lines* and return the totals."""
    classifier = LineClassifier(grammar, observers)
    for line in lines:
        classifier.classify(line)
    return classifier.counts
