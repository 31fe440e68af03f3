from typing import Dict, List, NamedTuple, Optional

from nexusparser.exceptions import (
    DuplicateNameError,
    UnexpectedCommandError,
    UnexpectedTokenError,
)
from nexusparser.parser.nexus_scanner import Command, RawBlock, iter_commands
from nexusparser.parser.resolvers import (
    DictionaryResolver,
    LabelResolver,
    StagedInsertResolver,
    TranslateResolver,
)
from nexusparser.parser.tokenizer import Token, TokenKind, Tokenizer
from nexusparser.taxon_dictionary import TaxonDictionary, TaxonId


class TreeStatement(NamedTuple):
    """A ``TREE`` statement; ``[start, end)`` covers its Newick text including ``;``."""

    index: int
    name: str
    is_default: bool
    start: int
    end: int


class TreesBlock(NamedTuple):
    translate: Optional[Dict[str, TaxonId]]
    statements: List[TreeStatement]

    def resolver(self, taxa: TaxonDictionary) -> LabelResolver:
        """
        Pick the leaf resolver for this block's trees.

        A TRANSLATE table wins; otherwise names are looked up when the
        dictionary is frozen, or inserted as they are first seen.
        """
        if self.translate is not None:
            return TranslateResolver(self.translate)
        if taxa.frozen:
            return DictionaryResolver(taxa)
        return StagedInsertResolver(taxa)


def _expect_label(token: Token, what: str) -> Token:
    if token.kind is not TokenKind.LABEL:
        raise UnexpectedTokenError(
            f"Expected {what} but found {token.describe()}", token.start
        )
    return token


def parse_translate(text: str, command: Command, taxa: TaxonDictionary) -> Dict[str, TaxonId]:
    """
    Parse ``TRANSLATE <token> <name>, ... ;`` into a ``token -> TaxonId`` map.

    Names are looked up in a frozen dictionary. An open dictionary is instead
    defined by the table: names are inserted in table order and the dictionary
    is frozen once the command ends.

    Raises:
        UnknownTaxonNameError: If a name is missing from a frozen dictionary.
        DuplicateNameError: If a token, or a name defining the dictionary, repeats.
    """
    defines_taxa = not taxa.frozen
    mapping: Dict[str, TaxonId] = {}
    tokens = Tokenizer(text, command.args_start, command.end, annotations=False)

    while tokens.peek().kind is not TokenKind.END:
        key = _expect_label(tokens.next(), "a TRANSLATE token")
        name = _expect_label(tokens.next(), f"a taxon name for token '{key.value}'")
        if key.value in mapping:
            raise DuplicateNameError(
                f"Duplicate TRANSLATE token '{key.value}'", key.start
            )
        if defines_taxa:
            mapping[key.value] = taxa.insert_new(name.value, name.start)
        else:
            mapping[key.value] = taxa.id_of(name.value, name.start)

        separator = tokens.next()
        if separator.kind is TokenKind.END:
            break
        if separator.kind is not TokenKind.COMMA:
            raise UnexpectedTokenError(
                f"Expected ',' between TRANSLATE entries but found {separator.describe()}",
                separator.start,
            )

    if defines_taxa:
        taxa.freeze()
    return mapping


def parse_tree_statement(text: str, command: Command, index: int) -> TreeStatement:
    """Read the header of ``TREE [*] <name> = <newick>;``."""
    tokens = Tokenizer(text, command.args_start, command.end, symbols="=", annotations=False)
    token = _expect_label(tokens.next(), "a tree name")

    is_default = not token.quoted and token.value.startswith("*")
    name = token.value
    if is_default:
        name = name[1:]
        if not name:
            name = _expect_label(tokens.next(), "a tree name after '*'").value

    equals = tokens.next()
    if equals.kind is not TokenKind.SYMBOL:
        raise UnexpectedTokenError(
            f"Expected '=' after tree name '{name}' but found {equals.describe()}",
            equals.start,
        )
    return TreeStatement(index, name, is_default, equals.end, command.end + 1)


def parse_trees_block(
    text: str, block: RawBlock, taxa: TaxonDictionary, first_index: int = 0
) -> TreesBlock:
    """
    Read the TRANSLATE table and the TREE statement headers of a TREES block.

    The Newick text of each statement is left in place; the sample driver parses
    it with the resolver returned by ``TreesBlock.resolver``.

    Args:
        text: The whole NEXUS document.
        block: The TREES block window.
        taxa: The dictionary; an open one is defined by a TRANSLATE table.
        first_index: Sample index given to the first tree of this block.

    Raises:
        UnexpectedCommandError: On a repeated or late TRANSLATE, or any other
            command.
    """
    translate: Optional[Dict[str, TaxonId]] = None
    statements: List[TreeStatement] = []

    for command in iter_commands(text, block.start, block.end):
        if command.name == "TRANSLATE":
            if translate is not None or statements:
                raise UnexpectedCommandError(
                    "TRANSLATE must appear once, before the TREE statements",
                    command.start,
                )
            translate = parse_translate(text, command, taxa)
        elif command.name == "TREE":
            statements.append(
                parse_tree_statement(text, command, first_index + len(statements))
            )
        else:
            raise UnexpectedCommandError(
                f"Unexpected command '{command.keyword}' in TREES block", command.start
            )

    return TreesBlock(translate, statements)
