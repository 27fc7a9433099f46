"""prompt_toolkit lexer for live tinyphp syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as PhpLexer, LexError
from .token_types import TT, Tok

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "variable": "ansiyellow",
    "identifier": "",
    "function": "bold ansiyellow",
    "builtin": "bold ansiblue",
    "operator": "",
    "punctuation": "",
}

_KEYWORDS = set(PhpLexer.KEYWORDS.values())

_OPERATORS = {
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.MOD, TT.DOT,
    TT.EQ, TT.NEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
    TT.AND, TT.OR, TT.NOT, TT.ASSIGN, TT.ARROW, TT.RANGE, TT.DOUBLE_ARROW,
}

_BUILTIN_NAMES = {"print", "println", "args", "exit", "true", "false"}

def _token_group(tokens: list[Tok], idx: int) -> str:
    tok = tokens[idx]
    prev = tokens[idx - 1] if idx > 0 else None
    nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None

    if tok.type in _KEYWORDS:
        return "keyword"
    if tok.type == TT.INT:
        return "number"
    if tok.type == TT.STRING:
        return "string"
    if tok.type in _OPERATORS:
        return "operator"

    if tok.type == TT.IDENT:
        if prev is not None and prev.type == TT.DOLLAR:
            return "variable"
        if tok.value in _BUILTIN_NAMES:
            return "builtin"
        if nxt is not None and nxt.type == TT.LPAR:
            return "function"
        if prev is not None and prev.type in (TT.FUNCTION, TT.ARROW):
            return "function"
        return "identifier"

    if tok.type == TT.DOLLAR:
        return "variable"

    return "punctuation"

def _string_end(text: str, start: int) -> int:
    quote = text[start]
    j = start + 1

    while j < len(text):
        if text[j] == "\\":
            j += 2
            continue
        if text[j] == quote:
            return j + 1
        j += 1

    return len(text)

def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    try:
        tokens = PhpLexer(text).tokenize()
    except LexError:
        return [("", text)]

    result: StyleAndTextTuples = []
    pos = 0

    for i, tok in enumerate(tokens):
        if tok.type == TT.EOF:
            continue

        # strings carry decoded values, so take the quoted source span instead
        start = tok.column - 1
        if tok.type == TT.STRING:
            tok_text = text[start:_string_end(text, start)]
        else:
            tok_text = str(tok.value)

        if not tok_text or start < pos:
            continue

        # Unstyled gap before token (whitespace, comments).
        if start > pos:
            result.append(("", text[pos:start]))

        style = GROUP_STYLE.get(_token_group(tokens, i), "")
        result.append((style, tok_text))
        pos = start + len(tok_text)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class PhpHighlightLexer(Lexer):
    """prompt_toolkit Lexer that highlights tinyphp source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
