from pathlib import Path
from typing import Optional, Tuple, Union

from nexusparser.config import ParserConfig
from nexusparser.parser.newick_parser import parse_newick
from nexusparser.parser.nexus_parser import parse_newick_trees, parse_nexus
from nexusparser.sample import NexusTreeSample
from nexusparser.taxon_dictionary import TaxonDictionary
from nexusparser.tree import Tree

PathLike = Union[str, Path]


def _read_text(path: PathLike, encoding: str) -> str:
    with open(path, encoding=encoding) as f:
        return f.read()


def read_newick(path: PathLike, encoding: str = "utf-8") -> Tuple[Tree, TaxonDictionary]:
    """Read a file holding exactly one Newick tree."""
    return parse_newick(_read_text(path, encoding))


def read_newick_trees(
    path: PathLike, config: Optional[ParserConfig] = None, encoding: str = "utf-8"
) -> NexusTreeSample:
    """Read a file holding one or more Newick trees sharing their taxa."""
    return parse_newick_trees(_read_text(path, encoding), config)


def read_nexus(
    path: PathLike, config: Optional[ParserConfig] = None, encoding: str = "utf-8"
) -> NexusTreeSample:
    """Read a NEXUS tree file (``.nex``, ``.trees``) into a sample."""
    return parse_nexus(_read_text(path, encoding), config)
