"""Fast, memory-frugal parsing of Newick strings and NEXUS tree samples."""

from nexusparser.config import FailurePolicy, ParserConfig
from nexusparser.exceptions import ErrorKind, NexusParserError
from nexusparser.io import read_newick, read_newick_trees, read_nexus
from nexusparser.parser import parse_newick, parse_newick_trees, parse_nexus
from nexusparser.sample import NamedTree, NexusTreeSample
from nexusparser.taxon_dictionary import TaxonDictionary, TaxonId
from nexusparser.tree import Internal, Leaf, Tree, Vertex

__all__ = [
    "FailurePolicy",
    "ParserConfig",
    "ErrorKind",
    "NexusParserError",
    "read_newick",
    "read_newick_trees",
    "read_nexus",
    "parse_newick",
    "parse_newick_trees",
    "parse_nexus",
    "NamedTree",
    "NexusTreeSample",
    "TaxonDictionary",
    "TaxonId",
    "Internal",
    "Leaf",
    "Tree",
    "Vertex",
]
