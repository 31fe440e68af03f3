"""
Leaf-label resolvers used by the Newick parser.

A resolver turns the text of a leaf label into a taxon id. Three strategies
cover every way a tree can refer to its taxa:

* ``TranslateResolver``: tokens go through a TRANSLATE table.
* ``DictionaryResolver``: labels are taxon names of a frozen dictionary.
* ``StagedInsertResolver``: labels are taxon names and the dictionary is still
  being built from the leaves that are seen first.

The first two are read-only and picklable, so they can be shipped to worker
processes.
"""

from typing import Dict, List, Optional, Protocol

from nexusparser.exceptions import (
    MissingTranslateTableError,
    UnknownTaxonNameError,
    UnknownTranslateTokenError,
)
from nexusparser.taxon_dictionary import TaxonDictionary, TaxonId


class LabelResolver(Protocol):
    def __call__(self, label: str, position: int) -> TaxonId: ...


class TranslateResolver:
    """Resolve translate tokens ("1", "beetle") to taxon ids."""

    __slots__ = ("mapping",)

    def __init__(self, mapping: Dict[str, TaxonId]):
        self.mapping = mapping

    def __call__(self, label: str, position: int) -> TaxonId:
        try:
            return self.mapping[label]
        except KeyError:
            raise UnknownTranslateTokenError(
                f"Token '{label}' is not defined in the TRANSLATE table", position
            ) from None

    def __repr__(self) -> str:
        return f"TranslateResolver({len(self.mapping)} tokens)"


class DictionaryResolver:
    """Resolve taxon names against a dictionary that is already complete."""

    __slots__ = ("taxa",)

    def __init__(self, taxa: TaxonDictionary):
        self.taxa = taxa

    def __call__(self, label: str, position: int) -> TaxonId:
        taxon_id = self.taxa.get(label)
        if taxon_id is not None:
            return taxon_id
        if label.isdigit():
            raise MissingTranslateTableError(
                f"Numeric leaf token '{label}' used without a TRANSLATE table",
                position,
            )
        raise UnknownTaxonNameError(f"Unknown taxon name '{label}'", position)

    def __repr__(self) -> str:
        return f"DictionaryResolver({self.taxa!r})"


class StagedInsertResolver:
    """
    Build the dictionary from the leaf names of successive trees.

    Names already in the dictionary resolve to their id. New names receive
    provisional ids following the dictionary's current size; they are only
    written to the dictionary by ``commit()``, once the whole tree has parsed.
    ``discard()`` drops them after a failure.
    """

    __slots__ = ("taxa", "_pending", "_pending_ids")

    def __init__(self, taxa: TaxonDictionary):
        self.taxa = taxa
        self._pending: List[str] = []
        self._pending_ids: Dict[str, TaxonId] = {}

    def __call__(self, label: str, position: int) -> TaxonId:
        taxon_id: Optional[TaxonId] = self.taxa.get(label)
        if taxon_id is None:
            taxon_id = self._pending_ids.get(label)
        if taxon_id is None:
            taxon_id = len(self.taxa) + len(self._pending)
            self._pending.append(label)
            self._pending_ids[label] = taxon_id
        return taxon_id

    def commit(self) -> None:
        for name in self._pending:
            self.taxa.insert_new(name)
        self.discard()

    def discard(self) -> None:
        self._pending.clear()
        self._pending_ids.clear()

    def __repr__(self) -> str:
        return f"StagedInsertResolver({self.taxa!r}, {len(self._pending)} pending)"
