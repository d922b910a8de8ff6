"""Map a file path (and, when needed, its content) to a language.

Resolution order, first match wins:

1. well-known build/config file names (``CMakeLists.txt``, ``Makefile``...);
2. ambiguous extensions (``.m``, ``.ts``...), decided among their candidate
   languages by a content classifier;
3. the extension table of the registry;
4. the interpreter named on a ``#!`` first line;
5. the bare extension itself.

Steps 2 and 4 read the file only when the caller did not supply its bytes.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Sequence, Tuple, Union

from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import UnresolvedLanguageError
from .languages import DEFAULT_REGISTRY, LanguageRegistry

__all__ = [
    "ContentClassifier",
    "LanguageResolver",
    "classify_with_pygments",
    "parse_shebang",
]

# (path, content, candidate language names) -> one of the candidates, or None
ContentClassifier = Callable[[Path, bytes, Sequence[str]], Optional[str]]

# Exact, case-sensitive file names.
FILENAMES: Dict[str, str] = {
    "meson.build": "Meson",
    "meson_options.txt": "Meson",
    "CMakeLists.txt": "CMake",
    "configure.ac": "M4",
    "Makefile.am": "Makefile",
    "build.xml": "Ant",
    "pom.xml": "Maven",
}

# Case-insensitive file names; None means "never count this file".
FILENAMES_NOCASE: Dict[str, Optional[str]] = {
    "makefile": "Makefile",
    "nukefile": "Nu",
    "rebar": None,
}

# Ambiguous extensions whose every content-classifier answer maps to one
# dedicated registry entry.
SIBLING_LANGUAGES: Dict[str, str] = {
    "mo": "Motoko",
}

# Interpreter name -> extension key in the registry's extension table.
SHEBANG_ALIASES: Dict[str, str] = {
    "gosh": "scm",
    "make": "make",
    "perl": "pl",
    "rc": "plan9sh",
    "python": "py",
    "ruby": "rb",
    "escript": "erl",
}

SHEBANG_ENV_REGEX = re.compile(r"^#! *(\S+/env) ([a-zA-Z]+)")
SHEBANG_PATH_REGEX = re.compile(r"^#! *[.a-zA-Z/]+/([a-zA-Z]+)")

# Pygments lexer alias for each language that shares an ambiguous extension.
CANDIDATE_LEXERS: Dict[str, str] = {
    "Objective-C": "objective-c",
    "MATLAB": "matlab",
    "Coq": "coq",
    "Verilog": "verilog",
    "F#": "fsharp",
    "GLSL": "glsl",
    "R": "splus",
    "Rebol": "rebol",
    "TypeScript": "typescript",
}

# Content patterns that single out one candidate.  Several lexers (F#, GLSL)
# have no text analyser of their own, so these carry most of the weight.
CONTENT_HINTS: Dict[str, Tuple[Pattern, ...]] = {
    "Objective-C": (
        re.compile(
            r"^\s*(@(interface|class|protocol|property|end|synchronized|selector|implementation)\b"
            r"|#import\s+.+\.h[\">])",
            re.M,
        ),
    ),
    "MATLAB": (re.compile(r"^\s*%", re.M), re.compile(r"^\s*function\b.*=", re.M)),
    "Mercury": (re.compile(r"^\s*:-\s*(module|interface|implementation|import_module)\b", re.M),),
    "Coq": (
        re.compile(r"(?:^|\s)(?:Proof|Qed)\.(?:$|\s)", re.M),
        re.compile(r"(?:^|\s)Require\s+(?:Import|Export)\s", re.M),
    ),
    "Verilog": (re.compile(r"^[ \t]*module\s+[^\s()]+\s*#?\(", re.M),),
    "F#": (re.compile(r"^\s*(#light|import|let|module|namespace|open|type)\b", re.M),),
    "GLSL": (re.compile(r"^\s*(#version|precision|uniform|varying|in|out|vec[234])\b", re.M),),
    "R": (re.compile(r"<-(?!-)"), re.compile(r"\blibrary\s*\(")),
    "Rebol": (re.compile(r"\bREBOL\b", re.I),),
}


def _lexer_score(language: str, text: str) -> float:
    alias = CANDIDATE_LEXERS.get(language)
    if alias is None:
        return 0.0
    try:
        lexer = get_lexer_by_name(alias)
    except ClassNotFound:
        return 0.0
    return float(lexer.analyse_text(text) or 0.0)


def classify_with_pygments(
    path: Path, content: bytes, candidates: Sequence[str]
) -> Optional[str]:
    """Pick the most likely of *candidates* for *content*.

    Each candidate scores one point per matching content hint plus its
    Pygments lexer's ``analyse_text`` rating.  Ties, including the all-zero
    case, go to the candidate declared first.
    """
    if not candidates:
        return None
    text = content.decode("utf-8", errors="ignore")

    scores: List[float] = []
    for language in candidates:
        hints = sum(1.0 for pattern in CONTENT_HINTS.get(language, ()) if pattern.search(text))
        scores.append(hints + _lexer_score(language, text))

    best = max(range(len(candidates)), key=lambda i: (scores[i], -i))
    return candidates[best]


def parse_shebang(line: str) -> Optional[str]:
    """Return the interpreter token of a ``#!`` line, or *None*."""
    match = SHEBANG_ENV_REGEX.match(line) or SHEBANG_PATH_REGEX.match(line)
    if match is None:
        return None
    interpreter = match.group(match.lastindex or 1)
    return SHEBANG_ALIASES.get(interpreter, interpreter)


def _extension(path: Path) -> str:
    # ".bashrc" has no suffix
    return path.suffix[1:] if path.suffix else ""


class LanguageResolver:
    """Resolve paths to language names of a :class:`LanguageRegistry`."""

    def __init__(
        self,
        registry: LanguageRegistry = DEFAULT_REGISTRY,
        content_classifier: Optional[ContentClassifier] = classify_with_pygments,
    ):
        self.registry = registry
        self.content_classifier = content_classifier

    def resolve(
        self, path: Union[str, Path], content: Optional[bytes] = None
    ) -> Optional[str]:
        """Return the language identifier for *path* or *None*.

        The identifier is a registry name whenever one can be derived; the
        raw shebang token or extension is returned otherwise, leaving the
        caller to decide what to do with a name the registry does not know.
        """
        path = Path(path)
        name = path.name

        if name in FILENAMES:
            return FILENAMES[name]
        if name.lower() in FILENAMES_NOCASE:
            return FILENAMES_NOCASE[name.lower()]

        ext = _extension(path)

        if ext in self.registry.ambiguous_extensions:
            return self._resolve_ambiguous(path, ext, content)

        if ext in self.registry.extensions:
            return self.registry.extensions[ext]

        interpreter = self._shebang(path, content)
        if interpreter:
            return self.registry.canonical_name(interpreter) or interpreter

        return ext or None

    def require(self, path: Union[str, Path], content: Optional[bytes] = None) -> str:
        """Like :meth:`resolve` but raise :class:`UnresolvedLanguageError`."""
        language = self.resolve(path, content)
        if language is None:
            raise UnresolvedLanguageError(path)
        return language

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_ambiguous(
        self, path: Path, ext: str, content: Optional[bytes]
    ) -> Optional[str]:
        if self.content_classifier is None:
            return None
        if content is None:
            try:
                content = path.read_bytes()
            except OSError:
                return None

        candidates = self.registry.ambiguous_extensions[ext]
        answer = self.content_classifier(path, content, candidates)
        if not answer:
            return None
        if ext in SIBLING_LANGUAGES:
            return SIBLING_LANGUAGES[ext]
        language = self.registry.canonical_name(answer)
        # Only a declared candidate is accepted.
        return language if language in candidates else None

    def _shebang(self, path: Path, content: Optional[bytes]) -> Optional[str]:
        if content is not None:
            first = content.split(b"\n", 1)[0]
        else:
            try:
                with path.open("rb") as fp:
                    first = fp.readline()
            except OSError:
                return None

        line = first.decode("utf-8", errors="ignore").lstrip()
        if len(line) > 2 and line.startswith("#!"):
            return parse_shebang(line)
        return None
