import pickle
from unittest.mock import MagicMock, patch

import pytest

from codeloc.tokens import DEFAULT_ENCODING, TokenCounter


@pytest.fixture
def cl100k():
    """The real cl100k_base encoding; skipped when it cannot be loaded offline."""
    tiktoken = pytest.importorskip("tiktoken")
    try:
        return tiktoken.get_encoding(DEFAULT_ENCODING)
    except Exception as exc:  # network or cache failure while fetching the BPE file
        pytest.skip(f"{DEFAULT_ENCODING} unavailable: {exc}")


def test_counts_encoded_tokens():
    """The count is the length of the encoding of the whole text."""
    fake = MagicMock()
    fake.encode.return_value = [1, 2, 3, 4]
    with patch("codeloc.tokens._encoding", return_value=fake) as loader:
        assert TokenCounter().count("a.py", "x = 1\n") == 4

    loader.assert_called_once_with(DEFAULT_ENCODING)
    fake.encode.assert_called_once_with("x = 1\n", disallowed_special=())


def test_empty_file_has_no_tokens():
    """Empty text never loads an encoding."""
    with patch("codeloc.tokens._encoding") as loader:
        assert TokenCounter().count("a.py", "") == 0
    loader.assert_not_called()


def test_cl100k_counts(cl100k):
    """Known cl100k_base counts for short texts."""
    counter = TokenCounter()
    assert counter.count("a.txt", "hello world") == 2
    assert counter.count("a.py", "x = 1\n") == len(cl100k.encode("x = 1\n"))


def test_special_token_text_is_plain_text(cl100k):
    """Special-token markers inside a file do not raise."""
    text = "# <|endoftext|>\n"
    assert TokenCounter().count("a.py", text) == len(cl100k.encode(text, disallowed_special=()))
    assert TokenCounter().count("a.py", text) > 1


def test_counter_is_picklable():
    """Counters travel to worker processes by encoding name only."""
    clone = pickle.loads(pickle.dumps(TokenCounter("o200k_base")))
    assert clone.encoding_name == "o200k_base"
