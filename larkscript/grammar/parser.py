"""Recursive-descent parser for the lark language, with precedence climbing for binary expressions.

Formally, the grammar can be defined as

```
<program>    ::= <statement>*
<statement>  ::= "import" <identifier>
               | "let" <identifier> "=" <expr>
               | <identifier> "=" <expr>                           ; assignment
               | <identifier> ("(" | ".") ...                      ; expression statement (call or module call)
               | "if" <expr> "then" <statement>* ("else" <statement>*)? "end"
               | "while" <expr> "do" <statement>* "end"
               | "fun" <identifier> "(" (<identifier> ","?)* ")" "do" <statement>* "end"
               | "print" "(" <expr> ")"
               | "return" <expr>

<expr>       ::= <additive> (("<" | ">" | "==" | "!=" | ">=" | "<=") <additive>)*  ; folded left
<additive>   ::= <multiplic> (("+" | "-") <multiplic>)*
<multiplic>  ::= <primary> (("*" | "/") <primary>)*
<primary>    ::= <number> | <string> | "(" <expr> ")"
               | <identifier>                                      ; variable
               | <identifier> "(" (<expr> ","?)* ")"               ; call
               | <identifier> "." <identifier>                     ; module access
               | <identifier> "." <identifier> "(" (<expr> ","?)* ")"  ; module call
```

Statements are not newline-sensitive: blocks are delimited purely by "else" and "end". There are no unary operators, and
an operator token that is not in the tables below (e.g. "+-") ends the expression it appears in.
"""

from larkscript.grammar.tree import (
    Assignment, Binary, Call, ExpressionStatement, FunDecl, Identifier, If, Import, ModuleAccess, ModuleCall, Number,
    Print, Program, Return, String, VarDecl, While
)
from larkscript.lang.error import LarkSyntaxError
from larkscript.pure.lexical import TokenKind


COMPARISON = [">", "<", "==", "!=", ">=", "<="]
ADDITIVE = ["+", "-"]
MULTIPLICATIVE = ["*", "/"]

BLOCK_OPENERS = ["if", "while", "fun"]  # keywords whose statements are closed by "end"


class Parser:
    """Parses a token sequence into a Program. One token of lookahead; the only rewind is in parse_statement."""

    def __init__(self, tokens):
        self.tokens = list(tokens)
        self.pos = 0

    def peek(self):
        """Current token, or None at end of input."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def consume(self):
        token = self.peek()
        if token is None:
            raise LarkSyntaxError("unexpected end of input")
        self.pos += 1
        return token

    def match(self, kind, lexeme=None):
        """Whether the current token is of kind (and has lexeme, if given). Never consumes."""
        token = self.peek()
        if token is None or token.kind is not kind:
            return False
        return lexeme is None or token.lexeme == lexeme

    def match_operator(self, operators):
        return self.match(TokenKind.OPERATOR) and self.peek().lexeme in operators

    def expect(self, kind, lexeme=None):
        """Consumes and returns the current token, which must be of kind (and have lexeme, if given)."""
        if not self.match(kind, lexeme):
            expected = f"'{lexeme}'" if lexeme else kind.value.lower()
            self.unexpected(expected)
        return self.consume()

    def unexpected(self, expected=None):
        """Raises a LarkSyntaxError about the current token (or about running out of tokens). expected describes what
        the grammar required at this point, if anything specific.
        """
        token = self.peek()
        prefix = f"expected {expected}, got" if expected else "unexpected"

        if token is None:
            raise LarkSyntaxError(f"{prefix} end of input")
        raise LarkSyntaxError(prefix + " token '{}'", token.lexeme, offset=token.offset)

    def parse(self):
        """Parses every statement in the token sequence."""
        statements = []
        while self.peek() is not None:
            statements.append(self.parse_statement())
        return Program(tuple(statements), offset=0)

    # --- statements ---

    def parse_statement(self):
        token = self.peek()
        if token is None:
            self.unexpected()

        if token.kind is TokenKind.KEYWORD:
            handler = {
                "import": self.parse_import,
                "let": self.parse_var_decl,
                "if": self.parse_if,
                "while": self.parse_while,
                "fun": self.parse_fun,
                "print": self.parse_print,
                "return": self.parse_return,
            }.get(token.lexeme)
            if handler is not None:
                return handler()

        elif token.kind is TokenKind.IDENTIFIER:
            name = self.consume()
            if self.match(TokenKind.OPERATOR, "="):
                self.consume()
                return Assignment(name.lexeme, self.parse_expression(), offset=name.offset)

            elif self.match(TokenKind.LPAREN) or self.match(TokenKind.DOT):
                self.pos -= 1  # reparse the identifier as the head of a full expression
                return ExpressionStatement(self.parse_expression(), offset=name.offset)

        self.unexpected()

    def parse_block(self, *terminators):
        """Parses statements until one of the terminator keywords is peeked. The terminator is not consumed."""
        body = []
        while not any(self.match(TokenKind.KEYWORD, keyword) for keyword in terminators):
            if self.peek() is None:
                self.unexpected(f"'{terminators[-1]}'")
            body.append(self.parse_statement())
        return tuple(body)

    def parse_import(self):
        keyword = self.expect(TokenKind.KEYWORD, "import")
        return Import(self.expect(TokenKind.IDENTIFIER).lexeme, offset=keyword.offset)

    def parse_var_decl(self):
        keyword = self.expect(TokenKind.KEYWORD, "let")
        name = self.expect(TokenKind.IDENTIFIER).lexeme
        self.expect(TokenKind.OPERATOR, "=")
        return VarDecl(name, self.parse_expression(), offset=keyword.offset)

    def parse_if(self):
        keyword = self.expect(TokenKind.KEYWORD, "if")
        condition = self.parse_expression()
        self.expect(TokenKind.KEYWORD, "then")

        then_body = self.parse_block("else", "end")
        else_body = ()
        if self.match(TokenKind.KEYWORD, "else"):
            self.consume()
            else_body = self.parse_block("end")

        self.expect(TokenKind.KEYWORD, "end")
        return If(condition, then_body, else_body, offset=keyword.offset)

    def parse_while(self):
        keyword = self.expect(TokenKind.KEYWORD, "while")
        condition = self.parse_expression()
        self.expect(TokenKind.KEYWORD, "do")
        body = self.parse_block("end")
        self.expect(TokenKind.KEYWORD, "end")
        return While(condition, body, offset=keyword.offset)

    def parse_fun(self):
        keyword = self.expect(TokenKind.KEYWORD, "fun")
        name = self.expect(TokenKind.IDENTIFIER).lexeme

        self.expect(TokenKind.LPAREN)
        params = []
        while not self.match(TokenKind.RPAREN):
            params.append(self.expect(TokenKind.IDENTIFIER).lexeme)
            if self.match(TokenKind.COMMA):
                self.consume()
        self.expect(TokenKind.RPAREN)

        self.expect(TokenKind.KEYWORD, "do")
        body = self.parse_block("end")
        self.expect(TokenKind.KEYWORD, "end")
        return FunDecl(name, tuple(params), body, offset=keyword.offset)

    def parse_print(self):
        keyword = self.expect(TokenKind.KEYWORD, "print")
        self.expect(TokenKind.LPAREN)
        expr = self.parse_expression()
        self.expect(TokenKind.RPAREN)
        return Print(expr, offset=keyword.offset)

    def parse_return(self):
        keyword = self.expect(TokenKind.KEYWORD, "return")
        return Return(self.parse_expression(), offset=keyword.offset)

    # --- expressions ---

    def parse_expression(self):
        return self.parse_binary(self.parse_additive, COMPARISON)

    def parse_additive(self):
        return self.parse_binary(self.parse_multiplicative, ADDITIVE)

    def parse_multiplicative(self):
        return self.parse_binary(self.parse_primary, MULTIPLICATIVE)

    def parse_binary(self, operand, operators):
        """Left-associative fold of operand (op operand)* for the operators of one precedence level."""
        left = operand()
        while self.match_operator(operators):
            op = self.consume()
            left = Binary(op.lexeme, left, operand(), offset=op.offset)
        return left

    def parse_arguments(self):
        """Parses a parenthesized argument list. Commas between arguments are optional."""
        self.expect(TokenKind.LPAREN)
        args = []
        while not self.match(TokenKind.RPAREN):
            if self.peek() is None:
                self.unexpected("')'")
            args.append(self.parse_expression())
            if self.match(TokenKind.COMMA):
                self.consume()
        self.expect(TokenKind.RPAREN)
        return tuple(args)

    def parse_primary(self):
        token = self.peek()

        if self.match(TokenKind.NUMBER):
            self.consume()
            return Number(float(token.lexeme), offset=token.offset)

        elif self.match(TokenKind.STRING):
            self.consume()
            return String(token.lexeme[1:-1], offset=token.offset)  # strip surrounding quotes

        elif self.match(TokenKind.IDENTIFIER):
            self.consume()

            if self.match(TokenKind.DOT):
                self.consume()
                member = self.expect(TokenKind.IDENTIFIER).lexeme
                if self.match(TokenKind.LPAREN):
                    return ModuleCall(token.lexeme, member, self.parse_arguments(), offset=token.offset)
                return ModuleAccess(token.lexeme, member, offset=token.offset)

            if self.match(TokenKind.LPAREN):
                return Call(token.lexeme, self.parse_arguments(), offset=token.offset)
            return Identifier(token.lexeme, offset=token.offset)

        elif self.match(TokenKind.LPAREN):
            self.consume()
            expr = self.parse_expression()
            self.expect(TokenKind.RPAREN)
            return expr

        self.unexpected("an expression")


def parse(tokens):
    """Returns the Program AST of tokens. Raises LarkSyntaxError if a required token is absent."""
    return Parser(tokens).parse()
