"""Lexical analysis for the lark language: raw source text in, flat sequence of tokens out.

Rules are tried at each position in a fixed priority order; the first one that matches wins:

```
<comment>    ::= "#" <char>*                      ; to end of line, discarded
<number>     ::= <digit>+ ("." <digit>+)?
<string>     ::= '"' <non-quote char>* '"'        ; no escape processing
<keyword>    ::= let | if | then | else | end | while | do | fun | print | return | import
<identifier> ::= [A-Za-z_][A-Za-z0-9_]*
<dot>        ::= "."
<operator>   ::= [+-*/<>=!]+                      ; maximal run, so "==" and "+-" are single tokens
<lparen>     ::= "("
<rparen>     ::= ")"
<comma>      ::= ","
<newline>    ::= "\n"                             ; discarded
<whitespace> ::= [ \t]+                           ; discarded
```

Any character that matches no rule is skipped, so tokenize never fails.
"""

import re
from dataclasses import dataclass
from enum import Enum


KEYWORDS = ["let", "if", "then", "else", "end", "while", "do", "fun", "print", "return", "import"]


class TokenKind(Enum):
    """Kinds of tokens handed to the parser."""
    NUMBER = "NUMBER"
    STRING = "STRING"
    KEYWORD = "KEYWORD"
    IDENTIFIER = "IDENTIFIER"
    DOT = "DOT"
    OPERATOR = "OPERATOR"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"


@dataclass(frozen=True)
class Token:
    """A single lexeme and the offset of its first character in the source."""
    kind: TokenKind
    lexeme: str
    offset: int

    def __str__(self):
        return self.lexeme


# (kind, pattern) in priority order; a kind of None means the match is consumed but not emitted
RULES = [
    (None, re.compile(r"#.*")),
    (TokenKind.NUMBER, re.compile(r"[0-9]+(\.[0-9]+)?")),
    (TokenKind.STRING, re.compile(r'"[^"]*"')),
    (TokenKind.KEYWORD, re.compile(r"(?:{})\b".format("|".join(KEYWORDS)))),
    (TokenKind.IDENTIFIER, re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")),
    (TokenKind.DOT, re.compile(r"\.")),
    (TokenKind.OPERATOR, re.compile(r"[+\-*/<>=!]+")),
    (TokenKind.LPAREN, re.compile(r"\(")),
    (TokenKind.RPAREN, re.compile(r"\)")),
    (TokenKind.COMMA, re.compile(r",")),
    (None, re.compile(r"\n")),
    (None, re.compile(r"[ \t]+")),
]


def tokenize(source):
    """Returns the list of Tokens in source. Comments, newlines, whitespace and unrecognized characters are dropped."""
    tokens = []
    pos = 0

    while pos < len(source):
        for kind, pattern in RULES:
            match = pattern.match(source, pos)
            if match:
                if kind is not None:
                    tokens.append(Token(kind, match.group(), pos))
                pos = match.end()
                break
        else:
            pos += 1  # lenient: skip what no rule recognizes

    return tokens
