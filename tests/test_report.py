import json
import xml.etree.ElementTree as ET

import pytest

from codeloc.aggregate import aggregate
from codeloc.models import FileRecord
from codeloc.report import (
    ClocXmlRenderer,
    JsonRenderer,
    SloccountRenderer,
    TableRenderer,
    get_renderer,
)


@pytest.fixture
def result():
    return aggregate(
        [
            FileRecord(path="./src/app.py", language="Python", code=10, comment=2, blank=3, tokens=40),
            FileRecord(path="./src/lib/util.go", language="Go", code=7, comment=1, blank=0, tokens=25),
            FileRecord(path="main.py", language="Python", code=1, comment=0, blank=1, tokens=2),
        ]
    )


def test_table_by_language(result):
    """The language table has a row per language and a TOTAL row."""
    text = TableRenderer().render(result)
    lines = text.splitlines()

    assert lines[0] == "-" * 79
    assert lines[1].startswith("Language")
    assert "tokens" not in lines[1]
    python = next(line for line in lines if line.startswith("Python"))
    assert python.split() == ["Python", "2", "4", "2", "11"]
    total = next(line for line in lines if line.startswith("TOTAL"))
    assert total.split() == ["TOTAL", "3", "4", "3", "18"]
    assert lines[-1] == "-" * 79


def test_table_tokens_column(result):
    """The tokens column appears only when asked for."""
    text = TableRenderer(show_tokens=True).render(result)
    lines = text.splitlines()

    assert lines[0] == "-" * 96
    assert lines[1].rstrip().endswith("tokens")
    go = next(line for line in lines if line.startswith("Go"))
    assert go.split() == ["Go", "1", "0", "1", "7", "25"]


def test_table_by_file(result):
    """The file table has a row per file."""
    lines = TableRenderer(by_file=True).render(result).splitlines()

    assert lines[1].startswith("File")
    row = next(line for line in lines if line.startswith("./src/lib/util.go"))
    assert row.split() == ["./src/lib/util.go", "0", "1", "7"]
    assert len(lines[0]) == len(lines[-1])


def test_cloc_xml_languages(result):
    """cloc XML lists languages and a total."""
    root = ET.fromstring(ClocXmlRenderer().render(result).encode("utf-8"))

    languages = root.find("languages")
    python = languages.find("language[@name='Python']")
    assert python.attrib == {
        "name": "Python",
        "files_count": "2",
        "code": "11",
        "comment": "2",
        "blank": "4",
    }
    total = languages.find("total")
    assert total.attrib["sum_files"] == "3"
    assert total.attrib["code"] == "18"


def test_cloc_xml_files(result):
    """cloc XML lists files and a total when by file."""
    root = ET.fromstring(ClocXmlRenderer(by_file=True).render(result).encode("utf-8"))

    files = root.find("files").findall("file")
    assert [f.attrib["name"] for f in files] == ["./src/app.py", "./src/lib/util.go", "main.py"]
    assert files[1].attrib["language"] == "Go"
    assert root.find("files/total").attrib == {"code": "18", "comment": "3", "blank": "4"}


def test_sloccount(result):
    """sloccount lines carry code, language, top directory and path."""
    lines = SloccountRenderer().render(result).splitlines()
    assert lines == [
        "10\tPython\tsrc\t./src/app.py",
        "7\tGo\tsrc\t./src/lib/util.go",
        "1\tPython\t\tmain.py",
    ]


def test_json_languages(result):
    """JSON by language carries a languages list and a total."""
    data = json.loads(JsonRenderer().render(result))

    assert data["total"] == {"files": 3, "code": 18, "comment": 3, "blank": 4, "tokens": 67}
    go = next(lang for lang in data["languages"] if lang["name"] == "Go")
    assert go == {"name": "Go", "files": 1, "code": 7, "comment": 1, "blank": 0, "tokens": 25}


def test_json_files(result):
    """JSON by file carries a files list and a total."""
    data = json.loads(JsonRenderer(by_file=True).render(result))

    assert set(data) == {"files", "total"}
    assert data["files"][0] == {
        "name": "./src/app.py",
        "language": "Python",
        "code": 10,
        "comment": 2,
        "blank": 3,
        "tokens": 40,
    }


def test_get_renderer():
    """get_renderer() picks the renderer class and rejects unknown types."""
    renderer = get_renderer("cloc-xml", by_file=True)
    assert isinstance(renderer, ClocXmlRenderer)
    assert renderer.by_file

    with pytest.raises(ValueError):
        get_renderer("yaml")
