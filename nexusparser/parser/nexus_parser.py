"""Sample-level driver: turns a NEXUS document into a NexusTreeSample."""

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from typing import (
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from tqdm import tqdm

from nexusparser.config import ParserConfig
from nexusparser.exceptions import MissingTaxaBlockError, NexusParserError
from nexusparser.parser.newick_parser import parse_newick_with_resolver
from nexusparser.parser.nexus_scanner import scan_blocks, split_statements
from nexusparser.parser.resolvers import LabelResolver, StagedInsertResolver
from nexusparser.parser.taxa_block import parse_taxa_block
from nexusparser.parser.trees_block import TreeStatement, parse_trees_block
from nexusparser.sample import NamedTree, NexusTreeSample
from nexusparser.taxon_dictionary import TaxonDictionary
from nexusparser.tree import Tree, Vertex

# (vertices, root) of a tree parsed in a worker, or the error it raised.
_WorkerResult = Union[Tuple[Tuple[Vertex, ...], int], NexusParserError]

# Per-process state installed by the pool initializer; read-only afterwards.
_worker_resolver: Optional[LabelResolver] = None
_worker_taxa: Optional[TaxonDictionary] = None


def _init_worker(resolver: LabelResolver, taxa: TaxonDictionary) -> None:
    global _worker_resolver, _worker_taxa
    _worker_resolver = resolver
    _worker_taxa = taxa


def _parse_in_worker(newick: str) -> _WorkerResult:
    """Parse one statement window; offsets in errors are relative to it."""
    if _worker_resolver is None or _worker_taxa is None:
        raise RuntimeError("Worker process was not initialised with a resolver")
    try:
        tree = parse_newick_with_resolver(newick, _worker_resolver, _worker_taxa)
    except NexusParserError as error:
        return error
    return tree.vertices, tree.root


class SampleBuilder:
    """
    Collects trees and failures in file order under the configured failure policy.

    Args:
        text: The document, used to locate errors.
        config: Parser configuration.
        taxa: The single dictionary shared by every tree.
    """

    def __init__(self, text: str, config: ParserConfig, taxa: Optional[TaxonDictionary] = None):
        self.text = text
        self.config = config
        self.logger = logging.getLogger(config.logger_name)
        self.taxa = taxa
        self.trees: List[NamedTree] = []
        self.errors: Dict[int, NexusParserError] = {}
        self.skipped_blocks: List[str] = []
        self.tree_count = 0

    def build(self) -> NexusTreeSample:
        taxa = self.taxa if self.taxa is not None else TaxonDictionary()
        return NexusTreeSample(
            taxa.freeze(), self.trees, self.errors, tuple(self.skipped_blocks)
        )

    # ------------------------------------------------------------------------
    # Per-tree outcomes
    # ------------------------------------------------------------------------

    def _accept(self, statement: TreeStatement, tree: Tree) -> None:
        self.trees.append(
            NamedTree(statement.index, statement.name, tree, statement.is_default)
        )

    def _reject(self, statement: TreeStatement, error: NexusParserError) -> None:
        error.tree_index = statement.index
        error.tree_name = statement.name
        error.locate(self.text)
        if not self.config.lenient:
            raise error
        self.logger.warning(f"Skipping tree '{statement.name}': {error.message}")
        self.errors[statement.index] = error

    def _progress(self, items: Iterable, total: int) -> Iterator:
        return iter(
            tqdm(
                items,
                total=total,
                desc="Parsing trees",
                disable=not self.config.show_progress,
            )
        )

    # ------------------------------------------------------------------------
    # Statement parsing
    # ------------------------------------------------------------------------

    def parse_statements(
        self,
        statements: Sequence[TreeStatement],
        resolver: LabelResolver,
        taxa: TaxonDictionary,
    ) -> None:
        """Parse each statement's Newick text into a tree over ``taxa``."""
        self.tree_count += len(statements)
        staged = isinstance(resolver, StagedInsertResolver)
        if self.config.workers > 1 and not staged and len(statements) > 1:
            self._parse_parallel(statements, resolver, taxa)
            return

        for statement in self._progress(statements, len(statements)):
            try:
                tree = parse_newick_with_resolver(
                    self.text, resolver, taxa, statement.start, statement.end
                )
            except NexusParserError as error:
                if staged:
                    resolver.discard()
                self._reject(statement, error)
                continue
            if staged:
                resolver.commit()
            self._accept(statement, tree)

    def _parse_parallel(
        self,
        statements: Sequence[TreeStatement],
        resolver: LabelResolver,
        taxa: TaxonDictionary,
    ) -> None:
        """
        Parse statements in worker processes.

        Only read-only resolvers get here. Results are consumed in file order,
        and trees are rebuilt around the shared dictionary instead of the
        per-process copy.
        """
        windows = [self.text[s.start : s.end] for s in statements]
        self.logger.debug(
            f"Parsing {len(statements)} trees with {self.config.workers} workers"
        )
        executor = ProcessPoolExecutor(
            max_workers=self.config.workers,
            initializer=_init_worker,
            initargs=(resolver, taxa),
        )
        try:
            results = executor.map(
                _parse_in_worker, windows, chunksize=self.config.chunksize
            )
            for statement, result in zip(
                statements, self._progress(results, len(statements))
            ):
                if isinstance(result, NexusParserError):
                    self._reject(statement, result.shift(statement.start))
                    continue
                vertices, root = result
                self._accept(statement, Tree(vertices, root, taxa))
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)


class NexusDocumentParser(SampleBuilder):
    """Drives the scanner and the TAXA/TREES block parsers over one document."""

    def parse(self) -> NexusTreeSample:
        blocks = scan_blocks(self.text)
        self.logger.debug(
            f"Scanned {len(blocks)} blocks: {', '.join(block.name for block in blocks)}"
        )
        for block in blocks:
            if block.kind == "TAXA":
                if self.taxa is not None:
                    self.logger.warning(
                        f"Ignoring TAXA block at offset {block.begin}: taxa are already defined"
                    )
                    self.skipped_blocks.append(block.name)
                    continue
                self.taxa = parse_taxa_block(self.text, block)
            elif block.kind == "TREES":
                taxa = self.taxa
                if taxa is None:
                    if self.config.require_taxa_block:
                        raise MissingTaxaBlockError(
                            "TREES block appears before any TAXA block", block.begin
                        )
                    taxa = self.taxa = TaxonDictionary()
                trees_block = parse_trees_block(
                    self.text, block, taxa, first_index=self.tree_count
                )
                self.parse_statements(
                    trees_block.statements, trees_block.resolver(taxa), taxa
                )
                taxa.freeze()
            else:
                self.skipped_blocks.append(block.name)
        return self.build()


def _run(
    parse: Callable[[], NexusTreeSample], text: str, config: ParserConfig
) -> NexusTreeSample:
    log = logging.getLogger(config.logger_name)
    start_time = time.perf_counter()
    try:
        sample = parse()
    except NexusParserError as error:
        if error.line is None:
            error.locate(text)
        raise
    log.info(
        f"Parsed {len(sample)} trees over {len(sample.taxa)} taxa "
        f"in {time.perf_counter() - start_time:.3f}s"
    )
    return sample


def parse_nexus(text: str, config: Optional[ParserConfig] = None) -> NexusTreeSample:
    """
    Parse a NEXUS document holding TAXA and TREES blocks.

    Args:
        text: The complete document.
        config: Failure policy, worker count and related settings.

    Returns:
        A NexusTreeSample whose trees all reference one TaxonDictionary.

    Raises:
        NexusParserError: On a malformed block, or on the first malformed tree
            in fail-fast mode.
    """
    config = config or ParserConfig()
    return _run(NexusDocumentParser(text, config).parse, text, config)


def parse_newick_trees(text: str, config: Optional[ParserConfig] = None) -> NexusTreeSample:
    """
    Parse a text holding several ``;``-terminated Newick trees.

    The trees share one dictionary built from leaf names in first-seen order;
    they are named ``tree_1``, ``tree_2`` and so on.
    """
    config = config or ParserConfig()
    taxa = TaxonDictionary()
    builder = SampleBuilder(text, config, taxa)

    def parse() -> NexusTreeSample:
        # A last tree without its ';' becomes its own statement so that it
        # fails as that tree's MissingTerminator.
        statements = [
            TreeStatement(index, f"tree_{index + 1}", False, start, end)
            for index, (start, end) in enumerate(
                split_statements(text, keep_unterminated=True)
            )
        ]
        builder.parse_statements(statements, StagedInsertResolver(taxa), taxa)
        return builder.build()

    return _run(parse, text, config)
