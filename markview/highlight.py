"""Syntax highlighting of code-block lines using Pygments."""

from functools import lru_cache

from pygments import lex
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.token import Token
from pygments.util import ClassNotFound

from .styled_line import Span


# Checked in order; first matching token family wins
_TOKEN_STYLES = [
    (Token.Comment, "code.comment"),
    (Token.Keyword, "code.keyword"),
    (Token.Name.Function, "code.function"),
    (Token.Name.Class, "code.function"),
    (Token.Name.Builtin, "code.builtin"),
    (Token.Name.Decorator, "code.builtin"),
    (Token.Literal.String, "code.string"),
    (Token.Literal.Number, "code.number"),
    (Token.Operator, "code.operator"),
    (Token.Punctuation, "code.punctuation"),
]


@lru_cache(maxsize=64)
def lexer_for(language: str):
    """Return a lexer for a fence language tag, falling back to plain text."""
    if not language:
        return TextLexer(stripnl=False, ensurenl=False)
    try:
        return get_lexer_by_name(language.lower(), stripnl=False, ensurenl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False, ensurenl=False)


def token_style(token_type) -> str:
    for family, style in _TOKEN_STYLES:
        if token_type in family:
            return style
    return "code"


def highlight(line: str, language: str) -> list[Span]:
    """Highlight a single line of code.

    Args:
        line: Source line without its trailing newline
        language: Fence language tag (may be empty)

    Returns:
        Spans whose texts concatenate back to ``line``
    """
    if not line:
        return []
    spans: list[Span] = []
    for token_type, value in lex(line, lexer_for(language)):
        if not value:
            continue
        value = value.replace("\n", "")
        if not value:
            continue
        style = token_style(token_type)
        if spans and spans[-1].style == style:
            spans[-1].text += value
        else:
            spans.append(Span(value, style))
    if "".join(span.text for span in spans) != line:
        # Lexers that rewrite whitespace (tabs, trailing blanks) lose the mapping
        return [Span(line, "code")]
    return spans
