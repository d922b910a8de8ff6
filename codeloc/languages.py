"""Comment grammars and the language registry.

The grammar table lives in *languages.yaml* bundled alongside this module.
It holds three sections:

* **languages**             – per-language single-line prefixes and
  multi-line ``[begin, end]`` pairs.
* **extensions**            – file extension (no leading dot) → language.
* **ambiguous_extensions**  – extensions shared by unrelated languages; the
  resolver decides between the listed candidates from file content.

The registry is built once at import time (:data:`DEFAULT_REGISTRY`) and is
read-only afterwards, so a single instance can be shared by every resolver
and classifier, including worker processes.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import BaseModel

__all__ = [
    "Grammar",
    "LanguageRegistry",
    "load_registry",
    "DEFAULT_REGISTRY",
    "UNKNOWN_LANGUAGE",
    "UNKNOWN_GRAMMAR",
]

LANGUAGES_FILE = Path(__file__).with_name("languages.yaml")

# Pseudo-language for files the resolver cannot place.
UNKNOWN_LANGUAGE = "Unknown"


class Grammar(BaseModel):
    """Comment syntax of one language."""

    name: str
    line_comments: Tuple[str, ...] = ()
    multi_lines: Tuple[Tuple[str, str], ...] = ()

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def multi_line_disabled(self) -> bool:
        """True when the only pair is the ``("", "")`` sentinel."""
        return len(self.multi_lines) == 1 and self.multi_lines[0] == ("", "")

    @property
    def begin_delimiters(self) -> Tuple[str, ...]:
        return tuple(begin for begin, _ in self.multi_lines if begin)


UNKNOWN_GRAMMAR = Grammar(name=UNKNOWN_LANGUAGE)


class LanguageRegistry:
    """Immutable lookup table of :class:`Grammar` objects."""

    def __init__(
        self,
        grammars: Iterable[Grammar],
        extensions: Mapping[str, str],
        ambiguous_extensions: Mapping[str, Sequence[str]],
    ):
        by_name: Dict[str, Grammar] = {}
        for grammar in grammars:
            by_name[grammar.name] = grammar

        self._grammars = MappingProxyType(by_name)
        self._lowered = MappingProxyType({name.lower(): name for name in by_name})
        self.extensions: Mapping[str, str] = MappingProxyType(dict(extensions))
        self.ambiguous_extensions: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {ext: tuple(candidates) for ext, candidates in ambiguous_extensions.items()}
        )

    # MappingProxyType cannot be pickled; rebuild from plain containers so
    # the registry can travel to worker processes.
    def __reduce__(self):
        return (
            LanguageRegistry,
            (
                tuple(self._grammars.values()),
                dict(self.extensions),
                {ext: list(c) for ext, c in self.ambiguous_extensions.items()},
            ),
        )

    def __contains__(self, name: object) -> bool:
        return name in self._grammars

    def __len__(self) -> int:
        return len(self._grammars)

    def lookup(self, name: str) -> Optional[Grammar]:
        """Return the grammar registered under exactly *name*, if any."""
        return self._grammars.get(name)

    def all(self) -> Tuple[Grammar, ...]:
        return tuple(self._grammars.values())

    def canonical_name(self, token: str) -> Optional[str]:
        """Map *token* to a registered language name.

        *token* may be a language name (any letter case) or a key of the
        extension table, which is how resolver answers such as ``py`` or
        ``bash`` become ``Python`` and ``BASH``.
        """
        if not token:
            return None
        if token in self._grammars:
            return token
        if token in self.extensions:
            return self.extensions[token]
        return self._lowered.get(token.lower())

    def extensions_for(self, name: str) -> List[str]:
        exts = [ext for ext, lang in self.extensions.items() if lang == name]
        for ext, candidates in self.ambiguous_extensions.items():
            if name in candidates and ext not in exts:
                exts.append(ext)
        return sorted(exts)

    def describe(self) -> str:
        """Human-readable list of languages and their extensions."""
        lines = []
        for name in sorted(self._grammars):
            lines.append(f"{name:<30} ({', '.join(self.extensions_for(name))})")
        return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _read_table(path: Path) -> Dict[str, dict]:
    data = yaml.safe_load(path.read_text("utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def _grammars_from(section: Mapping[str, dict]) -> List[Grammar]:
    return [
        Grammar(name=name, **(entry or {}))
        for name, entry in section.items()
    ]


def load_registry(custom_path: Optional[Path] = None) -> LanguageRegistry:
    """Build a :class:`LanguageRegistry` from the bundled table.

    If *custom_path* points to a YAML file with the same layout, its
    languages and extensions are merged over the built-in ones (same-named
    entries are replaced).
    """
    data = _read_table(LANGUAGES_FILE)
    grammars = {g.name: g for g in _grammars_from(data.get("languages") or {})}
    extensions: Dict[str, str] = dict(data.get("extensions") or {})
    ambiguous: Dict[str, List[str]] = dict(data.get("ambiguous_extensions") or {})

    if custom_path is not None:
        user = _read_table(Path(custom_path))
        for grammar in _grammars_from(user.get("languages") or {}):
            grammars[grammar.name] = grammar
        extensions.update(user.get("extensions") or {})
        ambiguous.update(user.get("ambiguous_extensions") or {})

    return LanguageRegistry(grammars.values(), extensions, ambiguous)


DEFAULT_REGISTRY = load_registry()
