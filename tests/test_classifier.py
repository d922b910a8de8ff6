from codeloc.classifier import LineClassifier, LineKind, LineObservers, classify_lines
from codeloc.languages import DEFAULT_REGISTRY, UNKNOWN_GRAMMAR, Grammar

PYTHON = DEFAULT_REGISTRY.lookup("Python")
C = DEFAULT_REGISTRY.lookup("C")
GO = DEFAULT_REGISTRY.lookup("Go")
LUA = DEFAULT_REGISTRY.lookup("Lua")
SVELTE = DEFAULT_REGISTRY.lookup("Svelte")
HTML = DEFAULT_REGISTRY.lookup("HTML")
BASH = DEFAULT_REGISTRY.lookup("BASH")


def kinds(grammar, lines):
    classifier = LineClassifier(grammar)
    return [classifier.classify(line) for line in lines]


def test_docstring_toggle_is_a_comment():
    """Python triple quotes open and close a comment block."""
    assert kinds(PYTHON, ["x = 1", '"""doc"""', "y = 2"]) == [
        LineKind.CODE,
        LineKind.COMMENT,
        LineKind.CODE,
    ]


def test_python_class_with_docstring():
    """A class with a docstring splits into code, comment and blank lines."""
    source = [
        "class Foo:",
        '    """',
        "    Docstring.",
        '    """',
        "",
        "    def bar(self):",
        "        return 1",
    ]
    counts = classify_lines(source, PYTHON)
    assert (counts.code, counts.comment, counts.blank) == (3, 3, 1)
    assert counts.total == len(source)


def test_shebang_first_line_is_code():
    """A shebang on the first line counts as code."""
    result = kinds(PYTHON, ["#!/usr/bin/env python", "# a comment", "print(1)"])
    assert result == [LineKind.CODE, LineKind.COMMENT, LineKind.CODE]


def test_shebang_only_counts_on_first_non_blank_line():
    """Later shebang-looking lines are ordinary comments."""
    result = kinds(PYTHON, ["", "#!/usr/bin/env python", "#!/not/a/shebang"])
    assert result == [LineKind.BLANK, LineKind.CODE, LineKind.COMMENT]


def test_blank_line_inside_open_comment_is_blank():
    """Blank lines stay blank inside a block comment."""
    classifier = LineClassifier(C)
    result = [classifier.classify(line) for line in ["/*", "   ", " * text", " */"]]
    assert result == [LineKind.COMMENT, LineKind.BLANK, LineKind.COMMENT, LineKind.COMMENT]
    assert not classifier.in_comment


def test_nested_block_comments_unwind():
    """Each closer pops one level of nesting."""
    classifier = LineClassifier(C)
    assert classifier.classify("/* a /* b */ c */") is LineKind.COMMENT
    assert classifier.stack == ()


def test_unterminated_nested_comment_carries_over():
    """An unclosed nested comment continues on the next line."""
    classifier = LineClassifier(C)
    classifier.classify("/* outer /* inner */")
    assert classifier.stack == (("/*", "*/"),)
    assert classifier.classify("int x;") is LineKind.COMMENT
    assert classifier.classify("*/ int y;") is LineKind.CODE
    assert not classifier.in_comment


def test_code_before_opener_is_code():
    """Code ahead of a block opener makes the line code."""
    result = kinds(GO, ["var n string /*", "still comment */", "x := 1"])
    assert result == [LineKind.CODE, LineKind.COMMENT, LineKind.CODE]


def test_code_after_closed_comment_is_code():
    """Code after a closed inline comment makes the line code."""
    assert kinds(C, ["/* c */ int x;"]) == [LineKind.CODE]


def test_line_comment_prefix():
    """Only lines starting with the prefix are comments."""
    assert kinds(C, ["// note", "   // indented note", "x++; // trailing"]) == [
        LineKind.COMMENT,
        LineKind.COMMENT,
        LineKind.CODE,
    ]


def test_lua_block_opener_is_not_a_line_comment():
    """Lua ``--[[`` opens a block rather than a line comment."""
    source = ["--[[ block", "still inside", "]]", "-- single", "print(1)"]
    assert kinds(LUA, source) == [
        LineKind.COMMENT,
        LineKind.COMMENT,
        LineKind.COMMENT,
        LineKind.COMMENT,
        LineKind.CODE,
    ]


def test_html_comment_prefix_equal_to_opener():
    """A line-comment prefix equal to the block opener still needs the closer."""
    classifier = LineClassifier(HTML)
    assert classifier.classify("<!-- open") is LineKind.COMMENT
    assert classifier.in_comment
    assert classifier.classify("-->") is LineKind.COMMENT
    assert not classifier.in_comment


def test_every_pair_must_witness_code():
    """With two pairs, a line is code only if both saw content outside comments."""
    assert kinds(SVELTE, ["<!-- c -->"]) == [LineKind.COMMENT]
    assert kinds(SVELTE, ["/* c */"]) == [LineKind.COMMENT]
    assert kinds(SVELTE, ["x <!-- c -->"]) == [LineKind.CODE]


def test_disabled_multi_line_comments():
    """The empty sentinel pair disables block comments."""
    assert BASH.multi_line_disabled
    classifier = LineClassifier(BASH)
    assert classifier.classify('echo "/* not a comment"') is LineKind.CODE
    assert classifier.classify("# real comment") is LineKind.COMMENT
    assert not classifier.in_comment


def test_grammar_without_pairs_never_enters_comment():
    """A grammar with no pairs only knows line comments."""
    grammar = Grammar(name="Conf", line_comments=("#",))
    classifier = LineClassifier(grammar)
    for line in ["/* not special", "value = 1", "# comment", "*/"]:
        classifier.classify(line)
        assert not classifier.in_comment
    assert (classifier.counts.code, classifier.counts.comment) == (3, 1)


def test_unknown_grammar_counts_code_and_blank_only():
    """The Unknown grammar has no comments at all."""
    counts = classify_lines(["# hi", "", "/* x */"], UNKNOWN_GRAMMAR)
    assert (counts.code, counts.comment, counts.blank) == (2, 0, 1)


def test_byte_order_mark_is_stripped_on_first_line():
    """A leading BOM does not hide a comment prefix."""
    assert kinds(PYTHON, ["\ufeff# coding: utf-8", "import os"]) == [
        LineKind.COMMENT,
        LineKind.CODE,
    ]
    assert kinds(PYTHON, ["\ufeffimport os"]) == [LineKind.CODE]


def test_observers_receive_untrimmed_lines():
    """Observers get each line as read, indentation included."""
    seen = {"code": [], "comment": [], "blank": []}
    observers = LineObservers(
        on_code=seen["code"].append,
        on_comment=seen["comment"].append,
        on_blank=seen["blank"].append,
    )
    classify_lines(["  x = 1  ", "  # note", "   "], PYTHON, observers)

    assert seen == {"code": ["  x = 1  "], "comment": ["  # note"], "blank": ["   "]}


def test_observers_do_not_change_counts():
    """Counting is identical with and without observers."""
    lines = ["/* a", "b */", "", "int main() {}"]
    plain = classify_lines(lines, C)
    observed = classify_lines(lines, C, LineObservers(on_code=lambda _l: None))
    assert plain == observed


def test_classification_is_repeatable():
    """Classifying the same lines twice gives the same counts."""
    lines = ['"""', "text", '"""', "", "x = 1", "# y"]
    assert classify_lines(lines, PYTHON) == classify_lines(lines, PYTHON)


def test_reset_clears_state():
    """reset() forgets an open block comment."""
    classifier = LineClassifier(C)
    classifier.classify("/* open")
    classifier.reset()
    assert not classifier.in_comment
    assert classifier.counts.total == 0
    assert classifier.classify("int x;") is LineKind.CODE
