"""Test pygments-based code highlighting."""

from pygments.token import Token

from markview.highlight import highlight, lexer_for, token_style


def test_spans_reconstruct_line():
    line = "def greet(name): return f'hi {name}'  # say hi"
    spans = highlight(line, "python")
    assert "".join(span.text for span in spans) == line


def test_python_keywords_and_comments_styled():
    spans = highlight("return 1  # done", "python")
    styles = {span.text.strip(): span.style for span in spans if span.text.strip()}
    assert styles["return"] == "code.keyword"
    assert styles["# done"] == "code.comment"
    assert styles["1"] == "code.number"


def test_unknown_language_falls_back_to_plain():
    spans = highlight("whatever this is", "no-such-language")
    assert "".join(span.text for span in spans) == "whatever this is"
    assert all(span.style == "code" for span in spans)


def test_empty_line_has_no_spans():
    assert highlight("", "python") == []


def test_adjacent_spans_are_merged():
    spans = highlight("plain words here", "")
    assert len(spans) == 1


def test_token_style_families():
    assert token_style(Token.Comment.Single) == "code.comment"
    assert token_style(Token.Keyword.Constant) == "code.keyword"
    assert token_style(Token.Literal.String.Double) == "code.string"
    assert token_style(Token.Text) == "code"


def test_lexer_lookup_is_cached():
    assert lexer_for("python") is lexer_for("python")
