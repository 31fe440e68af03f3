from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from nexusparser.exceptions import NexusParserError
from nexusparser.taxon_dictionary import TaxonDictionary
from nexusparser.tree import Tree


class NamedTree(NamedTuple):
    index: int
    name: str
    tree: Tree
    is_default: bool = False


class NexusTreeSample:
    """
    An ordered collection of trees sharing a single taxon dictionary.

    Trees keep their file order. In lenient mode, trees that failed to parse
    are absent and their errors are kept in ``errors`` under their index, so
    ``NamedTree.index`` may skip values.

    Attributes:
        taxa: The dictionary every tree refers to.
        trees: Successfully parsed trees in file order.
        errors: Parse errors by tree index (lenient mode only).
        skipped_blocks: Names of the blocks that were scanned but not used.
    """

    __slots__ = ("taxa", "trees", "errors", "skipped_blocks")

    def __init__(
        self,
        taxa: TaxonDictionary,
        trees: Optional[List[NamedTree]] = None,
        errors: Optional[Dict[int, NexusParserError]] = None,
        skipped_blocks: Tuple[str, ...] = (),
    ):
        self.taxa = taxa
        self.trees: List[NamedTree] = trees if trees is not None else []
        self.errors: Dict[int, NexusParserError] = errors if errors is not None else {}
        self.skipped_blocks = skipped_blocks

    def __len__(self) -> int:
        return len(self.trees)

    def __iter__(self) -> Iterator[Tuple[str, Tree]]:
        for entry in self.trees:
            yield entry.name, entry.tree

    def __getitem__(self, position: Union[int, slice]) -> Union[Tree, List[Tree]]:
        if isinstance(position, slice):
            return [entry.tree for entry in self.trees[position]]
        return self.trees[position].tree

    def __repr__(self) -> str:
        text = f"NexusTreeSample({len(self.trees)} trees, {len(self.taxa)} taxa"
        if self.errors:
            text += f", {len(self.errors)} errors"
        return text + ")"

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.trees]

    @property
    def complete(self) -> bool:
        return not self.errors

    @property
    def default_tree(self) -> Optional[NamedTree]:
        """The first tree marked with ``*``, if any."""
        for entry in self.trees:
            if entry.is_default:
                return entry
        return None

    def get(self, name: str) -> Optional[Tree]:
        for entry in self.trees:
            if entry.name == name:
                return entry.tree
        return None
