"""
Exceptions raised while parsing Newick strings and NEXUS documents.

Every error carries the character offset at which it was detected. Errors
raised inside a NEXUS document are located against the whole document by the
driver, which fills in ``line``, ``column`` and a short ``context`` excerpt.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple, Type, Dict

CONTEXT_LENGTH = 50


class ErrorKind(Enum):
    UNBALANCED_PARENS = "UnbalancedParens"
    MISSING_TERMINATOR = "MissingTerminator"
    EMPTY_TREE = "EmptyTree"
    DUPLICATE_LEAF = "DuplicateLeaf"
    UNSUPPORTED_ANNOTATION = "UnsupportedAnnotation"
    DUPLICATE_NAME = "DuplicateName"
    UNKNOWN_TAXON_NAME = "UnknownTaxonName"
    UNKNOWN_TRANSLATE_TOKEN = "UnknownTranslateToken"
    TAXA_COUNT_MISMATCH = "TaxaCountMismatch"
    UNEXPECTED_COMMAND = "UnexpectedCommand"
    MISSING_TAXA_BLOCK = "MissingTaxaBlock"
    MISSING_TRANSLATE_TABLE = "MissingTranslateTable"
    DICTIONARY_FROZEN = "DictionaryFrozen"
    UNEXPECTED_TOKEN = "UnexpectedToken"
    INVALID_BRANCH_LENGTH = "InvalidBranchLength"
    UNCLOSED_COMMENT = "UnclosedComment"
    UNEXPECTED_END_OF_INPUT = "UnexpectedEndOfInput"


def line_column(text: str, position: int) -> Tuple[int, int]:
    """Return the 1-based (line, column) of ``position`` in ``text``."""
    position = max(0, min(position, len(text)))
    line = text.count("\n", 0, position) + 1
    column = position - (text.rfind("\n", 0, position) + 1) + 1
    return line, column


class NexusParserError(Exception):
    """Base exception for all Newick and NEXUS parsing failures."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        context: str = "",
        tree_index: Optional[int] = None,
        tree_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        self.context = context
        self.tree_index = tree_index
        self.tree_name = tree_name

    def __reduce__(self):
        # Keyword-only attributes are lost by the default Exception pickling.
        return (
            _rebuild_error,
            (
                self.__class__,
                self.message,
                self.position,
                self.line,
                self.column,
                self.context,
                self.tree_index,
                self.tree_name,
            ),
        )

    def shift(self, offset: int) -> "NexusParserError":
        """Move the position by ``offset``; used when a window was parsed out of place."""
        if self.position is not None:
            self.position += offset
        return self

    def locate(self, text: str) -> "NexusParserError":
        """Fill ``line``, ``column`` and ``context`` from the originating text."""
        if self.position is None:
            return self
        self.line, self.column = line_column(text, self.position)
        self.context = text[self.position : self.position + CONTEXT_LENGTH]
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.tree_name is not None:
            parts.append(f"in tree '{self.tree_name}' (#{self.tree_index})")
        if self.line is not None:
            parts.append(f"at line {self.line}, column {self.column}")
        elif self.position is not None:
            parts.append(f"at position {self.position}")
        text = " ".join(parts)
        if self.context:
            text += f"\n  Context (next {len(self.context)} characters): {self.context}"
        return text


def _rebuild_error(
    cls: Type[NexusParserError],
    message: str,
    position: Optional[int],
    line: Optional[int],
    column: Optional[int],
    context: str,
    tree_index: Optional[int],
    tree_name: Optional[str],
) -> NexusParserError:
    return cls(
        message,
        position,
        line=line,
        column=column,
        context=context,
        tree_index=tree_index,
        tree_name=tree_name,
    )


# Newick grammar


class UnbalancedParensError(NexusParserError):
    kind = ErrorKind.UNBALANCED_PARENS


class MissingTerminatorError(NexusParserError):
    kind = ErrorKind.MISSING_TERMINATOR


class EmptyTreeError(NexusParserError):
    kind = ErrorKind.EMPTY_TREE


class DuplicateLeafError(NexusParserError):
    kind = ErrorKind.DUPLICATE_LEAF


class UnsupportedAnnotationError(NexusParserError):
    kind = ErrorKind.UNSUPPORTED_ANNOTATION


class UnexpectedTokenError(NexusParserError):
    kind = ErrorKind.UNEXPECTED_TOKEN


class InvalidBranchLengthError(NexusParserError):
    kind = ErrorKind.INVALID_BRANCH_LENGTH


class UnclosedCommentError(NexusParserError):
    kind = ErrorKind.UNCLOSED_COMMENT


# Taxon dictionary


class DuplicateNameError(NexusParserError):
    kind = ErrorKind.DUPLICATE_NAME


class UnknownTaxonNameError(NexusParserError):
    kind = ErrorKind.UNKNOWN_TAXON_NAME


class DictionaryFrozenError(NexusParserError):
    kind = ErrorKind.DICTIONARY_FROZEN


# NEXUS blocks


class UnknownTranslateTokenError(NexusParserError):
    kind = ErrorKind.UNKNOWN_TRANSLATE_TOKEN


class TaxaCountMismatchError(NexusParserError):
    kind = ErrorKind.TAXA_COUNT_MISMATCH


class UnexpectedCommandError(NexusParserError):
    kind = ErrorKind.UNEXPECTED_COMMAND


class MissingTaxaBlockError(NexusParserError):
    kind = ErrorKind.MISSING_TAXA_BLOCK


class MissingTranslateTableError(NexusParserError):
    kind = ErrorKind.MISSING_TRANSLATE_TABLE


class UnexpectedEndOfInputError(NexusParserError):
    kind = ErrorKind.UNEXPECTED_END_OF_INPUT


ERROR_CLASSES: Dict[ErrorKind, Type[NexusParserError]] = {
    cls.kind: cls
    for cls in (
        UnbalancedParensError,
        MissingTerminatorError,
        EmptyTreeError,
        DuplicateLeafError,
        UnsupportedAnnotationError,
        UnexpectedTokenError,
        InvalidBranchLengthError,
        UnclosedCommentError,
        DuplicateNameError,
        UnknownTaxonNameError,
        DictionaryFrozenError,
        UnknownTranslateTokenError,
        TaxaCountMismatchError,
        UnexpectedCommandError,
        MissingTaxaBlockError,
        MissingTranslateTableError,
        UnexpectedEndOfInputError,
    )
}
