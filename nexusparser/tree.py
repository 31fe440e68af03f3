from __future__ import annotations

from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

import numpy as np
from numpy.typing import NDArray

from nexusparser.taxon_dictionary import TaxonDictionary, TaxonId


class Leaf(NamedTuple):
    """A leaf vertex: a taxon id (never its name) and the length of its parent edge."""

    taxon: TaxonId
    branch_length: Optional[float] = None

    @property
    def is_leaf(self) -> bool:
        return True


class Internal(NamedTuple):
    """An internal vertex: ordered child indices, an optional verbatim label and edge length."""

    children: Tuple[int, ...]
    label: Optional[str] = None
    branch_length: Optional[float] = None

    @property
    def is_leaf(self) -> bool:
        return False


Vertex = Union[Leaf, Internal]


class Tree:
    """
    One parsed phylogeny stored as a flat arena of vertices.

    Parent/child relations are plain integer indices into the arena. Leaves only
    hold taxon ids; names are resolved through the shared ``TaxonDictionary``,
    which the tree references but never copies. A missing branch length is
    ``None`` and stays distinct from ``0.0``.

    Trees built by the Newick parser store their vertices in post-order, so the
    root is the last vertex and every child index is smaller than its parent's.
    """

    __slots__ = ("_vertices", "_root", "_taxa", "_parents")

    def __init__(
        self,
        vertices: Sequence[Vertex],
        root: int,
        taxa: TaxonDictionary,
        validate: bool = False,
    ):
        self._vertices: Tuple[Vertex, ...] = tuple(vertices)
        if not 0 <= root < len(self._vertices):
            raise ValueError(
                f"Root index {root} out of range for {len(self._vertices)} vertices"
            )
        self._root = root
        self._taxa = taxa

        parents = np.full(len(self._vertices), -1, dtype=np.int32)
        for index, vertex in enumerate(self._vertices):
            if isinstance(vertex, Internal):
                for child in vertex.children:
                    if not 0 <= child < len(self._vertices):
                        raise ValueError(
                            f"Vertex {index} references missing child {child}"
                        )
                    parents[child] = index
        parents.setflags(write=False)
        self._parents: NDArray[np.int32] = parents

        if validate:
            self.validate()

    # ------------------------------------------------------------------------
    # Basic accessors
    # ------------------------------------------------------------------------

    @property
    def vertices(self) -> Tuple[Vertex, ...]:
        return self._vertices

    @property
    def root(self) -> int:
        return self._root

    @property
    def taxa(self) -> TaxonDictionary:
        return self._taxa

    @property
    def parents(self) -> NDArray[np.int32]:
        """Read-only parent index per vertex; ``-1`` marks the root."""
        return self._parents

    def __len__(self) -> int:
        return len(self._vertices)

    def __getitem__(self, index: int) -> Vertex:
        return self._vertices[index]

    def __repr__(self) -> str:
        return f"Tree({self.num_leaves} leaves, {len(self._vertices)} vertices)"

    @property
    def num_leaves(self) -> int:
        return sum(1 for vertex in self._vertices if isinstance(vertex, Leaf))

    def is_leaf(self, index: int) -> bool:
        return isinstance(self._vertices[index], Leaf)

    def children(self, index: int) -> Tuple[int, ...]:
        vertex = self._vertices[index]
        if isinstance(vertex, Internal):
            return vertex.children
        return ()

    def parent(self, index: int) -> Optional[int]:
        parent = int(self._parents[index])
        return None if parent < 0 else parent

    def branch_length(self, index: int) -> Optional[float]:
        return self._vertices[index].branch_length

    def label(self, index: int) -> Optional[str]:
        """Taxon name for a leaf, the verbatim label (or ``None``) for an internal vertex."""
        vertex = self._vertices[index]
        if isinstance(vertex, Leaf):
            return self._taxa.name_of(vertex.taxon)
        return vertex.label

    def depth(self, index: int) -> int:
        """Number of edges between ``index`` and the root."""
        depth = 0
        parent = int(self._parents[index])
        while parent >= 0:
            depth += 1
            parent = int(self._parents[parent])
        return depth

    # ------------------------------------------------------------------------
    # Array views
    # ------------------------------------------------------------------------

    def branch_lengths(self) -> NDArray[np.float64]:
        """Branch length per vertex, NaN where the length is absent."""
        return np.array(
            [
                np.nan if vertex.branch_length is None else vertex.branch_length
                for vertex in self._vertices
            ],
            dtype=np.float64,
        )

    def has_branch_length(self) -> NDArray[np.bool_]:
        return np.array(
            [vertex.branch_length is not None for vertex in self._vertices],
            dtype=bool,
        )

    def leaf_taxa(self) -> NDArray[np.int32]:
        """Taxon ids of the leaves in arena order."""
        return np.array(
            [vertex.taxon for vertex in self._vertices if isinstance(vertex, Leaf)],
            dtype=np.int32,
        )

    # ------------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------------

    def preorder(self) -> Iterator[int]:
        """Yield vertex indices root first, children in input order."""
        stack: List[int] = [self._root]
        while stack:
            index = stack.pop()
            yield index
            vertex = self._vertices[index]
            if isinstance(vertex, Internal):
                stack.extend(reversed(vertex.children))

    def postorder(self) -> Iterator[int]:
        """Yield vertex indices children first, the root last."""
        stack: List[Tuple[int, bool]] = [(self._root, False)]
        while stack:
            index, expanded = stack.pop()
            vertex = self._vertices[index]
            if expanded or isinstance(vertex, Leaf):
                yield index
                continue
            stack.append((index, True))
            stack.extend((child, False) for child in reversed(vertex.children))

    def leaves(self) -> List[int]:
        """Leaf vertex indices in left-to-right input order."""
        return [index for index in self.preorder() if self.is_leaf(index)]

    def leaf_names(self) -> List[str]:
        return [self._taxa.name_of(self._vertices[index].taxon) for index in self.leaves()]

    def taxon_set(self) -> FrozenSet[TaxonId]:
        return frozenset(
            vertex.taxon for vertex in self._vertices if isinstance(vertex, Leaf)
        )

    def topology(self) -> Any:
        """
        Canonical, child-order independent description of the topology.

        Leaves map to their taxon id and internal vertices to the frozenset of
        their children's descriptions, so two trees are isomorphic exactly when
        their topologies compare equal. Labels and branch lengths are ignored.
        """
        shapes: Dict[int, Any] = {}
        for index in self.postorder():
            vertex = self._vertices[index]
            if isinstance(vertex, Leaf):
                shapes[index] = vertex.taxon
            else:
                shapes[index] = frozenset(shapes.pop(child) for child in vertex.children)
        return shapes[self._root]

    # ------------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check the structural invariants of the arena.

        Raises:
            ValueError: If a vertex has several parents, is unreachable from the
                root, an internal vertex has no children, a taxon id is unknown
                to the dictionary or appears twice.
        """
        vertex_count = len(self._vertices)
        parent_count = [0] * vertex_count
        seen_taxa: Set[TaxonId] = set()
        for index, vertex in enumerate(self._vertices):
            if isinstance(vertex, Leaf):
                if vertex.taxon not in self._taxa:
                    raise ValueError(f"Leaf {index} has unknown taxon id {vertex.taxon}")
                if vertex.taxon in seen_taxa:
                    raise ValueError(f"Taxon id {vertex.taxon} appears more than once")
                seen_taxa.add(vertex.taxon)
            else:
                if not vertex.children:
                    raise ValueError(f"Internal vertex {index} has no children")
                for child in vertex.children:
                    parent_count[child] += 1

        if parent_count[self._root] != 0:
            raise ValueError("The root vertex has a parent")
        for index, count in enumerate(parent_count):
            if index != self._root and count != 1:
                raise ValueError(f"Vertex {index} has {count} parents")

        reached = sum(1 for _ in self.preorder())
        if reached != vertex_count:
            raise ValueError(
                f"Only {reached} of {vertex_count} vertices are reachable from the root"
            )

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ValueError:
            return False
        return True
