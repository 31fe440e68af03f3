"""
Lexer shared by the Newick grammar and the NEXUS command parsers.

The tokenizer works on a window ``[start, end)`` of a larger text so that tree
statements inside a NEXUS document are lexed in place. Token offsets are always
absolute offsets into that text.
"""

import re
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional

from nexusparser.exceptions import (
    InvalidBranchLengthError,
    UnclosedCommentError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
    UnsupportedAnnotationError,
)

PUNCTUATION = "(),:;"
NEWICK_DELIMITERS = frozenset("(),:;[]")
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class TokenKind(Enum):
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    COLON = ":"
    SEMICOLON = ";"
    LABEL = "label"
    NUMBER = "number"
    SYMBOL = "symbol"
    END = "end of input"


_PUNCTUATION_KINDS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
}

# A '[' glued to one of these opens a vertex annotation rather than a comment.
_ANNOTATABLE = (TokenKind.LABEL, TokenKind.NUMBER, TokenKind.RPAREN)


class Token(NamedTuple):
    kind: TokenKind
    value: str
    start: int
    end: int
    quoted: bool = False

    def describe(self) -> str:
        if self.kind in (TokenKind.LABEL, TokenKind.NUMBER):
            return f"{self.kind.value} '{self.value}'"
        if self.kind is TokenKind.END:
            return self.kind.value
        return f"'{self.value}'"


def skip_comment(text: str, position: int, end: int) -> int:
    """
    Skip a (possibly nested) ``[...]`` comment starting at ``position``.

    Returns:
        The offset just past the closing bracket.

    Raises:
        UnclosedCommentError: If the window ends before the comment is closed.
    """
    depth = 0
    index = position
    while index < end:
        char = text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    raise UnclosedCommentError("Unclosed comment", position)


def skip_insignificant(text: str, position: int, end: int) -> int:
    """Skip whitespace and comments; return the offset of the next significant character."""
    while position < end:
        char = text[position]
        if char.isspace():
            position += 1
        elif char == "[":
            position = skip_comment(text, position, end)
        else:
            break
    return position


def read_quoted_label(text: str, position: int, end: int) -> Token:
    """Read a ``'...'`` label starting at ``position``; ``''`` is an escaped quote."""
    pieces: List[str] = []
    index = position + 1
    while True:
        closing = text.find("'", index, end)
        if closing < 0:
            raise UnexpectedEndOfInputError("Unterminated quoted label", position)
        pieces.append(text[index:closing])
        if closing + 1 < end and text[closing + 1] == "'":
            pieces.append("'")
            index = closing + 2
            continue
        return Token(TokenKind.LABEL, "".join(pieces), position, closing + 1, True)


class Tokenizer:
    """
    One-token-lookahead lexer over a text window.

    Args:
        text: The complete source text.
        start: First offset of the window.
        end: Offset one past the window; defaults to the end of ``text``.
        symbols: Extra single-character delimiters emitted as ``SYMBOL`` tokens
            (``"="`` for NEXUS commands, for instance).
        annotations: Reject ``[`` glued to a label, number or ``)`` as an
            unsupported vertex annotation. When false every bracket is a comment.
    """

    def __init__(
        self,
        text: str,
        start: int = 0,
        end: Optional[int] = None,
        symbols: str = "",
        annotations: bool = True,
    ):
        self.text = text
        self.position = start
        self.end = len(text) if end is None else end
        self.symbols = symbols
        self.annotations = annotations
        self._delimiters = NEWICK_DELIMITERS.union(symbols)
        self._previous: Optional[Token] = None
        self._lookahead: Optional[Token] = None

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            if token.kind is TokenKind.END:
                return
            yield token

    def peek(self) -> Token:
        if self._lookahead is None:
            self._lookahead = self._lex()
        return self._lookahead

    def next(self) -> Token:
        token = self.peek()
        self._lookahead = None
        return token

    def expect(self, kind: TokenKind, what: str) -> Token:
        token = self.next()
        if token.kind is not kind:
            raise UnexpectedTokenError(
                f"Expected {what} but found {token.describe()}", token.start
            )
        return token

    # ------------------------------------------------------------------------
    # Lexing
    # ------------------------------------------------------------------------

    def _lex(self) -> Token:
        text, end = self.text, self.end
        previous = self._previous
        position = self.position

        if (
            self.annotations
            and position < end
            and text[position] == "["
            and previous is not None
            and previous.kind in _ANNOTATABLE
            and previous.end == position
        ):
            raise UnsupportedAnnotationError(
                f"Vertex annotations are not supported (after {previous.describe()})",
                position,
            )

        position = skip_insignificant(text, position, end)
        if position >= end:
            token = Token(TokenKind.END, "", end, end)
        else:
            char = text[position]
            if char in _PUNCTUATION_KINDS:
                token = Token(_PUNCTUATION_KINDS[char], char, position, position + 1)
            elif char in self.symbols:
                token = Token(TokenKind.SYMBOL, char, position, position + 1)
            elif char == "]":
                raise UnexpectedTokenError("Unmatched ']'", position)
            elif char == "'":
                token = read_quoted_label(text, position, end)
            else:
                token = self._read_word(position)

        if previous is not None and previous.kind is TokenKind.COLON:
            token = self._as_number(token)

        self.position = token.end
        self._previous = token
        return token

    def _read_word(self, position: int) -> Token:
        text, end, delimiters = self.text, self.end, self._delimiters
        index = position
        while index < end:
            char = text[index]
            if char in delimiters or char.isspace():
                break
            index += 1
        return Token(TokenKind.LABEL, text[position:index], position, index)

    @staticmethod
    def _as_number(token: Token) -> Token:
        if token.kind is TokenKind.LABEL:
            if not token.quoted and NUMBER_PATTERN.fullmatch(token.value):
                return token._replace(kind=TokenKind.NUMBER)
            raise InvalidBranchLengthError(
                f"Invalid branch length '{token.value}'", token.start
            )
        raise InvalidBranchLengthError(
            f"Expected a branch length after ':' but found {token.describe()}",
            token.start,
        )


def tokenize(
    text: str,
    start: int = 0,
    end: Optional[int] = None,
    symbols: str = "",
    annotations: bool = True,
) -> List[Token]:
    """Lex the whole window into a list of tokens (without the END token)."""
    return list(Tokenizer(text, start, end, symbols, annotations))
