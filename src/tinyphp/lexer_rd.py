"""
Lexer for tinyphp - Recursive Descent Parser

Tokenizes tinyphp source code into a stream of tokens.

Features:
- Single-pass tokenization
- Longest-match operators (`..`, `=>`, `->`, `==` are single tokens)
- Position tracking (line, column) for every token
- Comments (`//`, `#`, `/* */`) and whitespace are dropped; newlines carry
  no meaning
"""

from typing import List

from .token_types import TT, Tok

INT64_MAX = 2**63 - 1

# ============================================================================
# Lexer Implementation
# ============================================================================

class LexError(Exception):
    """Lexical analysis error"""
    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")


class Lexer:
    """
    tinyphp lexer.

    Keywords are case-sensitive; `Function` in `namespace gophp\\Function`
    stays an identifier.
    """

    # Keyword mapping
    KEYWORDS = {
        'function': TT.FUNCTION,
        'if': TT.IF,
        'else': TT.ELSE,
        'foreach': TT.FOREACH,
        'as': TT.AS,
        'use': TT.USE,
        'namespace': TT.NAMESPACE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('->', TT.ARROW),
        ('=>', TT.DOUBLE_ARROW),
        ('..', TT.RANGE),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('.', TT.DOT),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NOT),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (',', TT.COMMA),
        (';', TT.SEMI),
        (':', TT.COLON),
        ('$', TT.DOLLAR),
        ('\\', TT.BACKSLASH),
    ]

    DOUBLE_QUOTE_ESCAPES = {
        'n': '\n',
        't': '\t',
        'r': '\r',
        '0': '\0',
        '\\': '\\',
        '"': '"',
        '$': '$',
    }

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

        # Start position of the token being scanned
        self.tok_line = 1
        self.tok_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        self.skip_open_tag()

        while self.pos < len(self.source):
            self.scan_token()

        self.tok_line, self.tok_column = self.line, self.column
        self.emit(TT.EOF, None)
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        # Skip whitespace (newlines included)
        if self.skip_whitespace():
            return

        self.tok_line, self.tok_column = self.line, self.column

        # Comments
        if self.peek() == '#' or self.source.startswith('//', self.pos):
            self.skip_comment()
            return
        if self.source.startswith('/*', self.pos):
            self.skip_block_comment()
            return

        # String literals
        if self.peek() in ('"', "'"):
            self.scan_string()
            return

        # Numbers
        if self.is_digit(self.peek()):
            self.scan_number()
            return

        # Identifiers and keywords
        if self.peek().isalpha() or self.peek() == '_':
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    def skip_open_tag(self):
        """Skip an optional `#!` line and the `<?php` open tag."""
        if self.source.startswith('#!'):
            self.skip_comment()

        start = self.pos
        while start < len(self.source) and self.source[start] in ' \t\r\n':
            start += 1

        if self.source.startswith('<?php', start):
            self.advance(start - self.pos + len('<?php'))

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self):
        """Scan string literal: "..." or '...'"""
        quote = self.advance()
        value = ''

        while self.pos < len(self.source) and self.peek() != quote:
            if self.peek() == '\\' and self.pos + 1 < len(self.source):
                value += self.scan_escape(quote)
            else:
                value += self.advance()

        if self.pos >= len(self.source):
            raise LexError("Unterminated string", self.tok_line, self.tok_column)

        self.advance()  # Closing quote
        self.emit(TT.STRING, value)

    def scan_escape(self, quote: str) -> str:
        """Decode one backslash escape; unknown escapes are kept verbatim"""
        nxt = self.peek(1)

        if quote == '"':
            decoded = self.DOUBLE_QUOTE_ESCAPES.get(nxt)
        else:
            decoded = nxt if nxt in ("'", '\\') else None

        if decoded is None:
            return self.advance()

        self.advance(2)
        return decoded

    def scan_number(self):
        """Scan integer literal"""
        value = ''

        while self.is_digit(self.peek()):
            value += self.advance()

        if self.peek() == '.' and self.is_digit(self.peek(1)):
            raise LexError("Float literals are not supported", self.tok_line, self.tok_column)

        if self.peek().isalpha() or self.peek() == '_':
            raise LexError("Invalid number suffix", self.tok_line, self.tok_column)

        if int(value) > INT64_MAX:
            raise LexError("Integer literal out of range", self.tok_line, self.tok_column)

        self.emit(TT.INT, value)

    def scan_identifier(self):
        """Scan identifier or keyword"""
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        # Check if keyword
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value)

    def scan_operator(self):
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str)
                return

        ch = self.peek()
        raise LexError(f"Unexpected character '{ch}'", self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    @staticmethod
    def is_digit(ch: str) -> bool:
        """ASCII digits only; str.isdigit() also accepts '²' and friends"""
        return '0' <= ch <= '9'

    def skip_whitespace(self) -> bool:
        """Skip whitespace and newlines, return True if any skipped"""
        skipped = False
        while self.pos < len(self.source) and self.peek() in (' ', '\t', '\r', '\n'):
            self.advance()
            skipped = True
        return skipped

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\0'):
            self.advance()

    def skip_block_comment(self):
        """Skip /* ... */ (doc comments included)"""
        self.advance(2)

        while self.pos < len(self.source):
            if self.source.startswith('*/', self.pos):
                self.advance(2)
                return
            self.advance()

        raise LexError("Unterminated comment", self.tok_line, self.tok_column)

    def emit(self, token_type: TT, value):
        """Emit a token at the start position of the current scan"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.tok_line,
            column=self.tok_column,
        )
        self.tokens.append(tok)

# ============================================================================
# Convenience
# ============================================================================

def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()
