# file: codeloc/tokens.py
"""Optional per-file token metric: the number of LLM tokens in a file.

Files are encoded whole with a *tiktoken* encoding (``cl100k_base`` by
default), so the count tells how much of a model's context the file would
take.  Token counts are reported next to the line counts and never
influence them.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Union

import tiktoken

__all__ = ["TokenCounter", "DEFAULT_ENCODING"]

DEFAULT_ENCODING = "cl100k_base"


@lru_cache(maxsize=None)
def _encoding(name: str) -> "tiktoken.Encoding":
    return tiktoken.get_encoding(name)


class TokenCounter:
    """Count the tokens of a whole file.

    Only the encoding name is stored, so instances can be sent to worker
    processes; each process loads the encoding once on first use.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING):
        self.encoding_name = encoding_name

    def count(self, path: Union[str, Path], text: str) -> int:
        if not text:
            return 0
        # Special-token markers in source files are counted as plain text.
        return len(_encoding(self.encoding_name).encode(text, disallowed_special=()))
