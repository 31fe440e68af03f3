"""
First pass over a NEXUS document.

The scanner only finds block boundaries: ``BEGIN <name>;`` up to the matching
``END;`` (or ``ENDBLOCK;``). Block bodies are kept as offsets into the document
and are interpreted later, and only for the TAXA and TREES blocks.
"""

from typing import Iterator, List, NamedTuple, Tuple

from nexusparser.exceptions import (
    MissingTerminatorError,
    UnexpectedCommandError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from nexusparser.parser.tokenizer import (
    TokenKind,
    Tokenizer,
    read_quoted_label,
    skip_comment,
    skip_insignificant,
)

NEXUS_HEADER = "#NEXUS"
BLOCK_TERMINATORS = ("END", "ENDBLOCK")


class RawBlock(NamedTuple):
    """A block body as the window ``[start, end)`` of the document."""

    name: str
    begin: int
    start: int
    end: int

    @property
    def kind(self) -> str:
        return self.name.upper()

    def body(self, text: str) -> str:
        return text[self.start : self.end]


class Command(NamedTuple):
    """A ``;``-terminated command; ``end`` is the offset of its ``;``."""

    keyword: str
    start: int
    args_start: int
    end: int

    @property
    def name(self) -> str:
        return self.keyword.upper()


def find_terminator(text: str, position: int, end: int) -> int:
    """
    Return the offset of the next ``;`` that is not inside a quote or comment.

    Returns ``-1`` when the window ends first.
    """
    while position < end:
        char = text[position]
        if char == ";":
            return position
        if char == "'":
            position = read_quoted_label(text, position, end).end
        elif char == "[":
            position = skip_comment(text, position, end)
        else:
            position += 1
    return -1


def split_statements(
    text: str, start: int = 0, end: int = -1, keep_unterminated: bool = False
) -> Iterator[Tuple[int, int]]:
    """
    Yield ``(start, end)`` windows of the ``;``-terminated statements in a text.

    Each window starts at the first significant character and includes the
    terminating ``;``. Trailing whitespace and comments are ignored.

    Args:
        keep_unterminated: Yield a trailing statement that lacks its ``;`` as a
            window running to ``end``, leaving the caller to report it.
    """
    if end < 0:
        end = len(text)
    position = skip_insignificant(text, start, end)
    while position < end:
        terminator = find_terminator(text, position, end)
        if terminator < 0:
            if keep_unterminated:
                yield position, end
                return
            raise UnexpectedEndOfInputError("Statement is not terminated by ';'", position)
        yield position, terminator + 1
        position = skip_insignificant(text, terminator + 1, end)


def iter_commands(text: str, start: int, end: int) -> Iterator[Command]:
    """Split the window ``[start, end)`` into NEXUS commands."""
    for command_start, command_end in split_statements(text, start, end):
        keyword_end = command_start
        while keyword_end < command_end - 1:
            char = text[keyword_end]
            if char.isspace() or char in "[=":
                break
            keyword_end += 1
        yield Command(
            text[command_start:keyword_end], command_start, keyword_end, command_end - 1
        )


def _read_block_name(text: str, command: Command) -> str:
    tokens = Tokenizer(text, command.args_start, command.end, annotations=False)
    name = tokens.next()
    if name.kind is not TokenKind.LABEL:
        raise UnexpectedTokenError(
            f"Expected a block name after BEGIN but found {name.describe()}",
            name.start,
        )
    extra = tokens.next()
    if extra.kind is not TokenKind.END:
        raise UnexpectedTokenError(
            f"Unexpected {extra.describe()} after block name '{name.value}'",
            extra.start,
        )
    return name.value


def _swallowed_block_end(text: str, command: Command) -> int:
    """
    Offset of an ``END``/``ENDBLOCK`` line absorbed by a command missing its ``;``.

    Returns ``-1`` unless the last word of the command is a block terminator
    standing alone at the start of its line.
    """
    word_end = command.end
    while word_end > command.args_start and text[word_end - 1].isspace():
        word_end -= 1
    word_start = word_end
    while word_start > command.args_start and not text[word_start - 1].isspace():
        word_start -= 1
    if text[word_start:word_end].upper() not in BLOCK_TERMINATORS:
        return -1
    line_start = text.rfind("\n", command.args_start, word_start)
    if line_start < 0 or text[line_start + 1 : word_start].strip():
        return -1
    return word_start


def skip_header(text: str) -> int:
    """Return the offset after leading whitespace, comments and an optional ``#NEXUS``."""
    position = skip_insignificant(text, 0, len(text))
    if text[position : position + len(NEXUS_HEADER)].upper() == NEXUS_HEADER:
        position += len(NEXUS_HEADER)
    return position


def scan_blocks(text: str) -> List[RawBlock]:
    """
    Split a NEXUS document into its blocks, in file order.

    Block keywords are matched case-insensitively. Blocks of any name are kept,
    including repeated names.

    Raises:
        UnexpectedCommandError: On a command outside of any block.
        UnexpectedEndOfInputError: If a block or command is not terminated.
        MissingTerminatorError: If a command inside a block lacks its ';' and
            runs into the block's END line.
    """
    blocks: List[RawBlock] = []
    open_name = ""
    open_begin = open_start = -1

    for command in iter_commands(text, skip_header(text), len(text)):
        if open_begin < 0:
            if command.name != "BEGIN":
                raise UnexpectedCommandError(
                    f"Expected BEGIN but found '{command.keyword}'", command.start
                )
            open_name = _read_block_name(text, command)
            open_begin, open_start = command.start, command.end + 1
        elif command.name in BLOCK_TERMINATORS:
            blocks.append(RawBlock(open_name, open_begin, open_start, command.start))
            open_begin = open_start = -1
        elif _swallowed_block_end(text, command) >= 0:
            raise MissingTerminatorError(
                f"Command '{command.keyword}' is not terminated by ';' "
                f"before the end of block '{open_name}'",
                command.start,
            )

    if open_begin >= 0:
        raise UnexpectedEndOfInputError(
            f"Block '{open_name}' is not terminated by END;", open_begin
        )
    return blocks
