from typing import List, NoReturn, Optional, Set, Tuple

from nexusparser.exceptions import (
    DuplicateLeafError,
    EmptyTreeError,
    MissingTerminatorError,
    UnbalancedParensError,
    UnexpectedTokenError,
)
from nexusparser.parser.resolvers import LabelResolver, StagedInsertResolver
from nexusparser.parser.tokenizer import Token, TokenKind, Tokenizer
from nexusparser.taxon_dictionary import TaxonDictionary, TaxonId
from nexusparser.tree import Internal, Leaf, Tree, Vertex


# ===================================================================
# 1. NODE STACK
# ===================================================================


class _OpenGroup:
    """An internal vertex whose ')' has not been read yet."""

    __slots__ = ("start", "children")

    def __init__(self, start: int):
        self.start = start
        self.children: List[int] = []


def _raise_missing_subtree(token: Token, stack: List[_OpenGroup]) -> NoReturn:
    """Raise the error for a token found where a leaf or '(' was expected."""
    if token.kind is TokenKind.RPAREN:
        if not stack:
            raise UnbalancedParensError("Unmatched ')'", token.start)
        if not stack[-1].children:
            raise EmptyTreeError("Empty subtree '()'", stack[-1].start)
        raise UnexpectedTokenError("Expected a subtree after ','", token.start)
    if token.kind in (TokenKind.END, TokenKind.SEMICOLON):
        if stack:
            raise UnbalancedParensError("Unclosed '('", stack[-1].start)
        raise EmptyTreeError("No tree found before the terminator", token.start)
    raise UnexpectedTokenError(
        f"Expected a leaf label or '(' but found {token.describe()}", token.start
    )


# ===================================================================
# 2. TOKEN HELPERS
# ===================================================================


def _read_branch_length(tokens: Tokenizer) -> Optional[float]:
    if tokens.peek().kind is not TokenKind.COLON:
        return None
    tokens.next()
    # The tokenizer only lets a NUMBER follow a ':'.
    return float(tokens.next().value)


def _read_internal_label(tokens: Tokenizer) -> Optional[str]:
    if tokens.peek().kind is TokenKind.LABEL:
        return tokens.next().value
    return None


def _expect_terminator(tokens: Tokenizer) -> None:
    token = tokens.next()
    if token.kind is TokenKind.SEMICOLON:
        trailing = tokens.next()
        if trailing.kind is not TokenKind.END:
            raise MissingTerminatorError(
                f"Unexpected {trailing.describe()} after ';'", trailing.start
            )
        return
    if token.kind is TokenKind.END:
        raise MissingTerminatorError("Missing ';' at the end of the tree", token.start)
    if token.kind is TokenKind.RPAREN:
        raise UnbalancedParensError("Unmatched ')'", token.start)
    raise MissingTerminatorError(
        f"Expected ';' but found {token.describe()}", token.start
    )


# ===================================================================
# 3. CORE PARSING FUNCTIONS
# ===================================================================


def parse_newick_with_resolver(
    text: str,
    resolver: LabelResolver,
    taxa: TaxonDictionary,
    start: int = 0,
    end: Optional[int] = None,
) -> Tree:
    """
    Parse one ``;``-terminated Newick tree from ``text[start:end]``.

    The grammar is read with one token of lookahead and an explicit stack of
    open groups instead of recursion, so very deep trees are fine. Vertices are
    appended in post-order; the root is the last one.

    Args:
        text: Source text; only the window ``[start, end)`` is read.
        resolver: Maps each leaf label to a taxon id, or raises.
        taxa: Dictionary the resulting tree refers to.
        start: First offset of the tree.
        end: Offset one past the terminating ``;``.

    Returns:
        The parsed Tree.

    Raises:
        NexusParserError: On any syntax error, duplicate leaf or resolver failure.
    """
    tokens = Tokenizer(text, start, end)
    vertices: List[Vertex] = []
    seen_taxa: Set[TaxonId] = set()
    stack: List[_OpenGroup] = []

    while True:
        token = tokens.next()
        if token.kind is TokenKind.LPAREN:
            stack.append(_OpenGroup(token.start))
            continue
        if token.kind is not TokenKind.LABEL:
            _raise_missing_subtree(token, stack)

        taxon = resolver(token.value, token.start)
        if taxon in seen_taxa:
            raise DuplicateLeafError(
                f"Taxon '{token.value}' appears more than once in the tree",
                token.start,
            )
        seen_taxa.add(taxon)
        vertices.append(Leaf(taxon, _read_branch_length(tokens)))

        # Attach the finished subtree, closing every group that ends here.
        while True:
            finished = len(vertices) - 1
            if not stack:
                _expect_terminator(tokens)
                return Tree(vertices, finished, taxa)

            stack[-1].children.append(finished)
            token = tokens.next()
            if token.kind is TokenKind.COMMA:
                break
            if token.kind is TokenKind.RPAREN:
                group = stack.pop()
                label = _read_internal_label(tokens)
                vertices.append(
                    Internal(tuple(group.children), label, _read_branch_length(tokens))
                )
                continue
            if token.kind in (TokenKind.END, TokenKind.SEMICOLON):
                raise UnbalancedParensError("Unclosed '('", stack[-1].start)
            raise UnexpectedTokenError(
                f"Expected ',' or ')' but found {token.describe()}", token.start
            )


# ===================================================================
# 4. PUBLIC API FUNCTIONS
# ===================================================================


def parse_newick(text: str) -> Tuple[Tree, TaxonDictionary]:
    """
    Parse a bare Newick string.

    A fresh dictionary is built from the leaf labels in first-seen order and
    frozen before it is returned.

    Example:
        >>> tree, taxa = parse_newick("(A:1.0,(B:2.0,C:3.0):4.0);")
        >>> taxa.names
        ('A', 'B', 'C')
    """
    taxa = TaxonDictionary()
    resolver = StagedInsertResolver(taxa)
    tree = parse_newick_with_resolver(text, resolver, taxa)
    resolver.commit()
    taxa.freeze()
    return tree, taxa
