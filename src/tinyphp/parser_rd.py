"""
Recursive Descent Parser for tinyphp

Structure:
- Lexer: Token stream from source
- Parser: Recursive descent with precedence climbing for expressions
- AST: lark Tree/Token nodes, labelled per construct (see `Parser`)

Conditions after `if` and the iterable after `foreach` are not
parenthesized. The expression grammar never consumes a `{`, so an
expression always ends where the following block begins.
"""

from typing import Dict, List, Optional

from lark import Token, Tree

from .lexer_rd import Lexer, tokenize
from .token_types import TT, Tok
from .tree import make_token, make_tree

# ============================================================================
# Parser
# ============================================================================

_SPELLING: Dict[TT, str] = {tt: f"'{text}'" for text, tt in Lexer.OPERATORS}
_SPELLING.update({tt: f"'{word}'" for word, tt in Lexer.KEYWORDS.items()})
_SPELLING.update({
    TT.INT: "integer",
    TT.STRING: "string",
    TT.IDENT: "identifier",
    TT.EOF: "end of input",
})

def describe(tok: Tok) -> str:
    """Human-readable name of a token for error messages"""
    if tok.type == TT.IDENT:
        return f"identifier '{tok.value}'"
    return _SPELLING.get(tok.type, tok.type.name)


class ParseError(Exception):
    """Parse error with position info and the construct that was expected"""
    def __init__(self, message: str, token: Optional[Tok] = None, expected: Optional[str] = None):
        self.message = message
        self.token = token
        self.expected = expected
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

class Parser:
    """
    Recursive descent parser for tinyphp.

    Expression precedence (lowest to highest):
    1. assignment (=)
    2. or (||)
    3. and (&&)
    4. equality (==, !=)
    5. relational (<, >, <=, >=)
    6. range (..)
    7. additive (+, -, .)
    8. multiplicative (*, /, %)
    9. unary (-, !)
    10. postfix (call, ->method(), [index])
    11. primary (literals, variables, names, parens, arrays, if, function)
    """

    def __init__(self, tokens: List[Tok]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, None, 0, 0)
        self.namespace_seen = False

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1] if self.tokens else Tok(TT.EOF, None, 0, 0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
            self.current = self.tokens[self.pos]
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None, expected: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            want = _SPELLING.get(token_type, token_type.name)
            msg = message or f"Expected {want}, got {describe(self.current)}"
            raise ParseError(msg, self.current, expected=expected or want.strip("'"))
        return self.advance()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        stmts = []

        while not self.check(TT.EOF):
            if self.match(TT.SEMI):
                continue

            if self.check(TT.NAMESPACE):
                stmts.append(self.parse_namespace_decl())
            elif self.check(TT.USE):
                stmts.append(self.parse_use_decl())
            else:
                stmts.append(self.parse_statement())

        return make_tree('program', stmts, 1, 1)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Tree | Token:
        """
        Parse a single statement.

        Statements include:
        - Function declarations
        - foreach loops
        - Bare blocks
        - Expressions (if-expressions and assignments included)
        """
        if self.check(TT.FUNCTION):
            if self.peek(1).type != TT.IDENT:
                raise ParseError("Expected function name", self.peek(1), expected="function name")
            return self.parse_fn_decl()

        if self.check(TT.FOREACH):
            return self.parse_foreach()

        if self.check(TT.LBRACE):
            return self.parse_block()

        if self.check(TT.NAMESPACE, TT.USE):
            raise ParseError(
                f"{describe(self.current)} is only allowed at top level", self.current
            )

        return self.parse_expr()

    def parse_block(self) -> Tree:
        """Parse block: { stmt* }"""
        lbrace = self.expect(TT.LBRACE, f"Expected '{{', got {describe(self.current)}", expected="{")
        stmts = []

        while not self.check(TT.RBRACE):
            if self.check(TT.EOF):
                raise ParseError(
                    f"Unmatched '{{' opened at line {lbrace.line}, col {lbrace.column}",
                    self.current,
                    expected="}",
                )
            if self.match(TT.SEMI):
                continue
            stmts.append(self.parse_statement())

        self.advance()  # }
        return make_tree('block', stmts, lbrace.line, lbrace.column)

    def parse_namespace_decl(self) -> Tree:
        """Parse namespace declaration: namespace a\\b"""
        tok = self.expect(TT.NAMESPACE)

        if self.namespace_seen:
            raise ParseError("Namespace is already declared", tok)
        self.namespace_seen = True

        name_tok = self.current
        path = self.parse_name_path(allow_leading=False)
        return make_tree('namespace_decl', [make_token('NAME', path, name_tok.line, name_tok.column)], tok.line, tok.column)

    def parse_use_decl(self) -> Tree:
        """Parse use declaration: use a\\b [as alias]"""
        tok = self.expect(TT.USE)
        name_tok = self.current
        path = self.parse_name_path()
        alias = path.rsplit('\\', 1)[-1]

        if self.match(TT.AS):
            alias = self.expect(TT.IDENT, "Expected alias after 'as'", expected="identifier").value

        children = [
            make_token('NAME', path.lstrip('\\'), name_tok.line, name_tok.column),
            make_token('IDENT', alias, name_tok.line, name_tok.column),
        ]
        return make_tree('use_decl', children, tok.line, tok.column)

    def parse_fn_decl(self) -> Tree:
        """Parse function declaration: function name(params) [: Type] { body }"""
        fn_tok = self.expect(TT.FUNCTION)
        name = self.expect(TT.IDENT, "Expected function name", expected="function name")

        children: List = [make_token('IDENT', name.value, name.line, name.column)]
        children.extend(self.parse_signature_and_body())
        return make_tree('fn_decl', children, fn_tok.line, fn_tok.column)

    def parse_fn_expr(self) -> Tree:
        """Parse anonymous function: function(params) [: Type] { body }"""
        fn_tok = self.expect(TT.FUNCTION)
        return make_tree('fn_expr', self.parse_signature_and_body(), fn_tok.line, fn_tok.column)

    def parse_signature_and_body(self) -> List[Tree]:
        parts = [self.parse_paramlist()]

        if self.check(TT.COLON):
            colon = self.advance()
            type_name = self.parse_name_path()
            parts.append(make_tree('rettype', [make_token('TYPE', type_name, colon.line, colon.column)]))

        parts.append(self.parse_block())
        return parts

    def parse_paramlist(self) -> Tree:
        """Parse parameter list: ( [Type] $name [= default], ... )"""
        lpar = self.expect(TT.LPAR, f"Expected '(' in function signature, got {describe(self.current)}", expected="(")
        params: List[Tree] = []
        seen = set()

        while not self.check(TT.RPAR):
            param = self.parse_param()
            name = param.children[0]

            if name in seen:
                raise ParseError(f"Duplicate parameter '${name}'", lpar)
            seen.add(str(name))
            params.append(param)

            if not self.match(TT.COMMA):
                break

        self.expect(
            TT.RPAR,
            f"Expected ',' or ')' in parameter list, got {describe(self.current)}",
            expected=")",
        )
        return make_tree('paramlist', params, lpar.line, lpar.column)

    def parse_param(self) -> Tree:
        start = self.current
        type_node = None

        if self.check(TT.IDENT, TT.BACKSLASH):
            type_name = self.parse_name_path()
            type_node = make_tree('type', [make_token('TYPE', type_name, start.line, start.column)])

        if not self.check(TT.DOLLAR):
            raise ParseError(
                f"Expected parameter, got {describe(self.current)}", self.current, expected="$name"
            )

        children: List = [self.parse_variable()]
        if type_node is not None:
            children.append(type_node)

        if self.match(TT.ASSIGN):
            children.append(make_tree('default', [self.parse_or()]))

        return make_tree('param', children, start.line, start.column)

    def parse_foreach(self) -> Tree:
        """
        Parse foreach loop:
        foreach <expr> as [$k =>] $v { body }
        foreach (<expr> as [$k =>] $v) { body }
        """
        tok = self.expect(TT.FOREACH)

        parenthesized = self.check(TT.LPAR) and self._paren_encloses_as()
        if parenthesized:
            self.advance()

        iterable = self.parse_expr()
        self.expect(TT.AS, f"Expected 'as' in foreach, got {describe(self.current)}", expected="as")

        first = self.parse_variable()
        binder = [first]
        if self.match(TT.DOUBLE_ARROW):
            binder.append(self.parse_variable())

        if parenthesized:
            self.expect(TT.RPAR, f"Expected ')' to close foreach header, got {describe(self.current)}", expected=")")

        body = self.parse_block()
        binder_node = make_tree('binder', binder, first.line, first.column)
        return make_tree('foreach', [iterable, binder_node, body], tok.line, tok.column)

    def _paren_encloses_as(self) -> bool:
        """True when the `(` at the cursor wraps the whole foreach header"""
        depth = 0

        for tok in self.tokens[self.pos:]:
            if tok.type in (TT.LPAR, TT.LSQB, TT.LBRACE):
                depth += 1
            elif tok.type in (TT.RPAR, TT.RSQB, TT.RBRACE):
                depth -= 1
                if depth == 0:
                    return False
            elif tok.type == TT.AS and depth == 1:
                return True
            elif tok.type == TT.EOF:
                return False

        return False

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Tree | Token:
        return self.parse_assignment()

    def parse_assignment(self) -> Tree | Token:
        """Parse assignment: $name = expr (right associative)"""
        lhs = self.parse_or()

        if self.check(TT.ASSIGN):
            eq_tok = self.advance()

            if not (isinstance(lhs, Token) and lhs.type == 'VAR'):
                raise ParseError("Invalid assignment target", eq_tok, expected="$name")

            rhs = self.parse_assignment()
            return make_tree('assign', [lhs, rhs], lhs.line, lhs.column)

        return lhs

    def _left_assoc(self, label: str, ops: tuple, operand) -> Tree | Token:
        lhs = operand()

        while self.check(*ops):
            op = self.advance()
            rhs = operand()
            line, column = _position_of(lhs, op)
            lhs = make_tree(label, [lhs, make_token(op.type.name, op.value, op.line, op.column), rhs], line, column)

        return lhs

    def parse_or(self) -> Tree | Token:
        return self._left_assoc('logical', (TT.OR,), self.parse_and)

    def parse_and(self) -> Tree | Token:
        return self._left_assoc('logical', (TT.AND,), self.parse_equality)

    def parse_equality(self) -> Tree | Token:
        return self._left_assoc('binary', (TT.EQ, TT.NEQ), self.parse_relational)

    def parse_relational(self) -> Tree | Token:
        return self._left_assoc('binary', (TT.LT, TT.GT, TT.LTE, TT.GTE), self.parse_range)

    def parse_range(self) -> Tree | Token:
        """Parse range: additive .. additive (non-associative)"""
        lhs = self.parse_additive()

        if not self.check(TT.RANGE):
            return lhs

        op = self.advance()
        rhs = self.parse_additive()

        if self.check(TT.RANGE):
            raise ParseError("Range expressions cannot be chained", self.current)

        line, column = _position_of(lhs, op)
        return make_tree('range', [lhs, rhs], line, column)

    def parse_additive(self) -> Tree | Token:
        return self._left_assoc('binary', (TT.PLUS, TT.MINUS, TT.DOT), self.parse_multiplicative)

    def parse_multiplicative(self) -> Tree | Token:
        return self._left_assoc('binary', (TT.STAR, TT.SLASH, TT.MOD), self.parse_unary)

    def parse_unary(self) -> Tree | Token:
        """Parse unary: -expr | !expr"""
        if self.check(TT.MINUS, TT.NOT):
            op = self.advance()
            operand = self.parse_unary()
            return make_tree('unary', [make_token(op.type.name, op.value, op.line, op.column), operand], op.line, op.column)

        return self.parse_postfix()

    def parse_postfix(self) -> Tree | Token:
        """Parse postfix chain: primary ( (args) | ->name(args) | [index] )*"""
        expr = self.parse_primary()

        while True:
            if self.check(TT.LPAR):
                line, column = _position_of(expr, self.current)
                args = self.parse_args()
                expr = make_tree('call', [expr, args], line, column)
                continue

            if self.check(TT.ARROW):
                arrow = self.advance()
                name = self.expect(TT.IDENT, "Expected method name after '->'", expected="method name")

                if not self.check(TT.LPAR):
                    raise ParseError(
                        f"Expected '(' after method name '{name.value}'", self.current, expected="("
                    )

                args = self.parse_args()
                method = make_token('IDENT', name.value, name.line, name.column)
                expr = make_tree('method_call', [expr, method, args], arrow.line, arrow.column)
                continue

            if self.check(TT.LSQB):
                lsqb = self.advance()
                index = self.parse_expr()
                self.expect(TT.RSQB, f"Expected ']' after index, got {describe(self.current)}", expected="]")
                expr = make_tree('index', [expr, index], lsqb.line, lsqb.column)
                continue

            return expr

    def parse_args(self) -> Tree:
        """Parse call arguments: ( expr, ... )"""
        lpar = self.expect(TT.LPAR)
        args = []

        while not self.check(TT.RPAR):
            args.append(self.parse_expr())
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAR, f"Expected ',' or ')' in argument list, got {describe(self.current)}", expected=")")
        return make_tree('args', args, lpar.line, lpar.column)

    def parse_primary(self) -> Tree | Token:
        """Parse primary expression"""
        tok = self.current

        match tok.type:
            case TT.INT:
                self.advance()
                return make_token('INT', tok.value, tok.line, tok.column)
            case TT.STRING:
                self.advance()
                return make_token('STRING', tok.value, tok.line, tok.column)
            case TT.DOLLAR:
                return self.parse_variable()
            case TT.IDENT | TT.BACKSLASH:
                path = self.parse_name_path()
                return make_token('NAME', path, tok.line, tok.column)
            case TT.LPAR:
                self.advance()
                expr = self.parse_expr()
                self.expect(TT.RPAR, f"Expected ')', got {describe(self.current)}", expected=")")
                return expr
            case TT.LSQB:
                return self.parse_array()
            case TT.IF:
                return self.parse_if_expr()
            case TT.FUNCTION:
                if self.peek(1).type == TT.IDENT:
                    raise ParseError("Named function declaration is not an expression", tok)
                return self.parse_fn_expr()
            case TT.EOF:
                raise ParseError("Unexpected end of input", tok, expected="expression")
            case _:
                raise ParseError(f"Unexpected {describe(tok)}", tok, expected="expression")

    def parse_variable(self) -> Token:
        """Parse variable: $name"""
        dollar = self.expect(TT.DOLLAR, f"Expected variable, got {describe(self.current)}", expected="$name")

        # keywords are valid variable names ($as, $function)
        if not (self.check(TT.IDENT) or self.current.type in Lexer.KEYWORDS.values()):
            raise ParseError("Expected variable name after '$'", self.current, expected="variable name")

        name = self.advance()
        return make_token('VAR', name.value, dollar.line, dollar.column)

    def parse_name_path(self, allow_leading: bool = True) -> str:
        """Parse name path: [\\]ident(\\ident)*"""
        parts = []

        if allow_leading and self.match(TT.BACKSLASH):
            parts.append('')

        parts.append(self.expect(TT.IDENT, f"Expected name, got {describe(self.current)}", expected="identifier").value)

        while self.check(TT.BACKSLASH) and self.peek(1).type == TT.IDENT:
            self.advance()
            parts.append(self.advance().value)

        return '\\'.join(parts)

    def parse_array(self) -> Tree:
        """Parse array literal: [e1, e2, ...] (trailing comma allowed)"""
        lsqb = self.expect(TT.LSQB)
        elements = []

        while not self.check(TT.RSQB):
            elements.append(self.parse_expr())
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RSQB, f"Expected ',' or ']' in array literal, got {describe(self.current)}", expected="]")
        return make_tree('array', elements, lsqb.line, lsqb.column)

    def parse_if_expr(self) -> Tree:
        """
        Parse if expression:
        if cond { body } [else { body } | else if ...]
        """
        tok = self.expect(TT.IF)
        cond = self.parse_expr()
        children = [cond, self.parse_block()]

        if self.match(TT.ELSE):
            if self.check(TT.IF):
                children.append(self.parse_if_expr())
            else:
                children.append(self.parse_block())

        return make_tree('if_expr', children, tok.line, tok.column)


def _position_of(node, fallback: Tok) -> tuple:
    """Line/column of the first token of an already-built node"""
    if isinstance(node, Token) and node.line is not None:
        return node.line, node.column

    if isinstance(node, Tree) and not node.meta.empty:
        return node.meta.line, node.meta.column

    return fallback.line, fallback.column

# ============================================================================
# Convenience
# ============================================================================

def parse(tokens: List[Tok]) -> Tree:
    parser = Parser(tokens)

    try:
        return parser.parse()
    except RecursionError:
        raise ParseError("Expression nested too deeply", parser.current) from None

def parse_source(source: str) -> Tree:
    """Tokenize and parse source into a `program` tree"""
    return parse(tokenize(source))
