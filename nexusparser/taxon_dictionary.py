from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from nexusparser.exceptions import (
    DictionaryFrozenError,
    DuplicateNameError,
    UnknownTaxonNameError,
)

TaxonId = int


class TaxonDictionary:
    """
    Append-only, bidirectional mapping between taxon names and dense integer ids.

    Ids are assigned in insertion order and form the range ``0..len-1``. Once
    ``freeze()`` has been called the dictionary is immutable and is meant to be
    shared by reference between every tree of a sample.
    """

    __slots__ = ("_names", "_ids", "_frozen")

    def __init__(self) -> None:
        self._names: List[str] = []
        self._ids: Dict[str, TaxonId] = {}
        self._frozen: bool = False

    @classmethod
    def from_names(cls, names: Iterable[str], freeze: bool = True) -> "TaxonDictionary":
        taxa = cls()
        for name in names:
            taxa.insert_new(name)
        if freeze:
            taxa.freeze()
        return taxa

    # ------------------------------------------------------------------------
    # Mutation (only while not frozen)
    # ------------------------------------------------------------------------

    def insert_new(self, name: str, position: Optional[int] = None) -> TaxonId:
        """
        Insert a name that must not be present yet and return its new id.

        Args:
            name: Taxon name, exactly as it appears after unquoting.
            position: Offset in the source text, reported on failure.

        Raises:
            DictionaryFrozenError: If the dictionary has been frozen.
            DuplicateNameError: If the name is already present.
        """
        if self._frozen:
            raise DictionaryFrozenError(
                f"Cannot insert taxon '{name}' into a frozen taxon dictionary",
                position,
            )
        if name in self._ids:
            raise DuplicateNameError(f"Duplicate taxon name '{name}'", position)
        taxon_id = len(self._names)
        self._names.append(name)
        self._ids[name] = taxon_id
        return taxon_id

    def freeze(self) -> "TaxonDictionary":
        self._frozen = True
        return self

    # ------------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------------

    def id_of(self, name: str, position: Optional[int] = None) -> TaxonId:
        try:
            return self._ids[name]
        except KeyError:
            raise UnknownTaxonNameError(f"Unknown taxon name '{name}'", position) from None

    def get(self, name: str, default: Optional[TaxonId] = None) -> Optional[TaxonId]:
        return self._ids.get(name, default)

    def name_of(self, taxon_id: TaxonId) -> str:
        if not 0 <= taxon_id < len(self._names):
            raise IndexError(
                f"Taxon id {taxon_id} out of range for dictionary of {len(self._names)} taxa"
            )
        return self._names[taxon_id]

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, item: Union[str, TaxonId]) -> bool:
        if isinstance(item, str):
            return item in self._ids
        return 0 <= item < len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"TaxonDictionary({len(self._names)} taxa, {state})"
