from typing import Optional

from nexusparser.exceptions import (
    TaxaCountMismatchError,
    UnexpectedCommandError,
    UnexpectedTokenError,
)
from nexusparser.parser.nexus_scanner import Command, RawBlock, iter_commands
from nexusparser.parser.tokenizer import TokenKind, Tokenizer
from nexusparser.taxon_dictionary import TaxonDictionary


def _expect_command(command: Optional[Command], name: str, position: int) -> Command:
    if command is None:
        raise UnexpectedCommandError(f"TAXA block is missing {name}", position)
    if command.name != name:
        raise UnexpectedCommandError(
            f"Expected {name} but found '{command.keyword}' in TAXA block",
            command.start,
        )
    return command


def parse_ntax(text: str, command: Command) -> int:
    """Read ``NTAX=<n>`` from a DIMENSIONS command."""
    tokens = Tokenizer(text, command.args_start, command.end, symbols="=", annotations=False)
    key = tokens.next()
    if key.kind is not TokenKind.LABEL or key.value.upper() != "NTAX":
        raise UnexpectedCommandError("DIMENSIONS must declare NTAX", key.start)
    equals = tokens.next()
    if equals.kind is not TokenKind.SYMBOL:
        raise UnexpectedTokenError(
            f"Expected '=' after NTAX but found {equals.describe()}", equals.start
        )
    value = tokens.next()
    if value.kind is not TokenKind.LABEL or not value.value.isdigit():
        raise UnexpectedTokenError(
            f"NTAX must be a non-negative integer, found {value.describe()}",
            value.start,
        )
    extra = tokens.next()
    if extra.kind is not TokenKind.END:
        raise UnexpectedCommandError(
            f"Unexpected {extra.describe()} in DIMENSIONS", extra.start
        )
    return int(value.value)


def parse_taxa_block(text: str, block: RawBlock) -> TaxonDictionary:
    """
    Parse ``DIMENSIONS NTAX=<n>; TAXLABELS <name> ... ;`` into a frozen dictionary.

    Ids follow the TAXLABELS order. The two commands must appear exactly once
    and in this order.

    Raises:
        UnexpectedCommandError: On any other command or order.
        DuplicateNameError: If TAXLABELS repeats a name.
        TaxaCountMismatchError: If the number of labels differs from NTAX.
    """
    commands = iter_commands(text, block.start, block.end)
    dimensions = _expect_command(next(commands, None), "DIMENSIONS", block.begin)
    ntax = parse_ntax(text, dimensions)
    taxlabels = _expect_command(next(commands, None), "TAXLABELS", dimensions.end)

    extra = next(commands, None)
    if extra is not None:
        raise UnexpectedCommandError(
            f"Unexpected command '{extra.keyword}' in TAXA block", extra.start
        )

    taxa = TaxonDictionary()
    for token in Tokenizer(text, taxlabels.args_start, taxlabels.end, annotations=False):
        if token.kind is not TokenKind.LABEL:
            raise UnexpectedTokenError(
                f"Expected a taxon name but found {token.describe()}", token.start
            )
        taxa.insert_new(token.value, token.start)

    if len(taxa) != ntax:
        raise TaxaCountMismatchError(
            f"DIMENSIONS declares NTAX={ntax} but TAXLABELS lists {len(taxa)} names",
            taxlabels.start,
        )
    return taxa.freeze()
