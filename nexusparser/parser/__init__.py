"""
Newick and NEXUS parsing.

The tokenizer and the Newick grammar engine are shared by the bare Newick entry
point and by the TREES block of NEXUS documents.
"""

from .newick_parser import parse_newick, parse_newick_with_resolver
from .nexus_parser import parse_newick_trees, parse_nexus
from .nexus_scanner import Command, RawBlock, iter_commands, scan_blocks
from .resolvers import DictionaryResolver, StagedInsertResolver, TranslateResolver
from .taxa_block import parse_taxa_block
from .tokenizer import Token, TokenKind, Tokenizer, tokenize
from .trees_block import TreeStatement, TreesBlock, parse_translate, parse_trees_block

__all__ = [
    "parse_newick",
    "parse_newick_with_resolver",
    "parse_newick_trees",
    "parse_nexus",
    "Command",
    "RawBlock",
    "iter_commands",
    "scan_blocks",
    "DictionaryResolver",
    "StagedInsertResolver",
    "TranslateResolver",
    "parse_taxa_block",
    "Token",
    "TokenKind",
    "Tokenizer",
    "tokenize",
    "TreeStatement",
    "TreesBlock",
    "parse_translate",
    "parse_trees_block",
]
