import logging

import pytest

from nexusparser import FailurePolicy, ParserConfig, parse_newick_trees, parse_nexus
from nexusparser.exceptions import (
    DuplicateLeafError,
    ErrorKind,
    MissingTerminatorError,
    TaxaCountMismatchError,
    UnbalancedParensError,
    UnknownTaxonNameError,
)
from nexusparser.parser.nexus_parser import _parse_in_worker

TAXA_ABCD = "BEGIN TAXA;\n  DIMENSIONS NTAX=4;\n  TAXLABELS A B C D;\nEND;\n"


def document(*tree_lines, taxa=TAXA_ABCD):
    body = "".join(f"  {line}\n" for line in tree_lines)
    return f"#NEXUS\n{taxa}BEGIN TREES;\n{body}END;\n"


MIXED = document(
    "TREE t0 = (A,(B,C));",
    "TREE t1 = (A,(A,B));",
    "TREE t2 = ((C,D),A);",
    "TREE t3 = (A,(B,C);",
    "TREE t4 = (D,(C,B));",
)

LENIENT = ParserConfig(failure_policy=FailurePolicy.LENIENT)


# ============================================================================
# Failure policy
# ============================================================================


def test_fail_fast_raises_the_first_error_in_file_order():
    with pytest.raises(DuplicateLeafError) as info:
        parse_nexus(MIXED)
    assert info.value.tree_index == 1
    assert info.value.tree_name == "t1"
    assert info.value.line == 8


def test_lenient_skips_bad_trees():
    sample = parse_nexus(MIXED, LENIENT)

    assert sample.names == ["t0", "t2", "t4"]
    assert [entry.index for entry in sample.trees] == [0, 2, 4]
    assert sorted(sample.errors) == [1, 3]
    assert sample.errors[1].kind is ErrorKind.DUPLICATE_LEAF
    assert isinstance(sample.errors[3], UnbalancedParensError)
    assert sample.errors[3].tree_name == "t3"
    assert not sample.complete
    assert repr(sample) == "NexusTreeSample(3 trees, 4 taxa, 2 errors)"


def test_lenient_logs_skipped_trees(caplog):
    with caplog.at_level(logging.WARNING, logger="nexusparser"):
        parse_nexus(MIXED, LENIENT)
    assert "Skipping tree 't1'" in caplog.text
    assert "Skipping tree 't3'" in caplog.text


def test_lenient_failed_tree_adds_no_taxa():
    text = document(
        "TREE t0 = (A,B);",
        "TREE t1 = (Z,(A,A));",
        "TREE t2 = (B,C);",
        taxa="",
    )
    sample = parse_nexus(text, LENIENT)
    assert sample.taxa.names == ("A", "B", "C")
    assert sample.names == ["t0", "t2"]


def test_block_level_errors_are_not_recovered():
    bad_taxa = "BEGIN TAXA;\n  DIMENSIONS NTAX=2;\n  TAXLABELS A;\nEND;\n"
    with pytest.raises(TaxaCountMismatchError):
        parse_nexus(document("TREE t0 = (A,B);", taxa=bad_taxa), LENIENT)


def test_info_log_summarises_the_sample(caplog):
    with caplog.at_level(logging.INFO, logger="nexusparser"):
        parse_nexus(document("TREE t0 = (A,(B,C));"))
    assert "Parsed 1 trees over 4 taxa" in caplog.text


# ============================================================================
# Worker processes
# ============================================================================


def translated_document(count):
    lines = ["TRANSLATE 1 A, 2 B, 3 C, 4 D;"]
    for k in range(count):
        a, b, c, d = (str((k + j) % 4 + 1) for j in range(4))
        lines.append(f"TREE t{k} = (({a}:{k}.5,{b}),({c},{d}):0.25);")
    return document(*lines)


def test_parallel_matches_serial():
    text = translated_document(40)
    serial = parse_nexus(text)
    parallel = parse_nexus(text, ParserConfig(workers=2, chunksize=3))

    assert parallel.names == serial.names
    assert all(tree.taxa is parallel.taxa for _, tree in parallel)
    for (_, expected), (_, actual) in zip(serial, parallel):
        assert actual.vertices == expected.vertices
        assert actual.root == expected.root


def test_parallel_errors_have_document_positions():
    lines = ["TREE t0 = (A,(B,C));", "TREE t1 = (A,(B,E));", "TREE t2 = (D,(C,B));"]
    text = document(*lines)
    lenient_parallel = ParserConfig(failure_policy="lenient", workers=2, chunksize=1)

    serial = parse_nexus(text, LENIENT)
    parallel = parse_nexus(text, lenient_parallel)

    assert parallel.names == ["t0", "t2"]
    error = parallel.errors[1]
    assert isinstance(error, UnknownTaxonNameError)
    assert error.position == serial.errors[1].position == text.index("E))")
    assert (error.line, error.column) == (serial.errors[1].line, serial.errors[1].column)

    with pytest.raises(UnknownTaxonNameError) as info:
        parse_nexus(text, ParserConfig(workers=2, chunksize=1))
    assert info.value.tree_index == 1
    assert info.value.position == text.index("E))")


def test_progress_bar_can_be_enabled():
    sample = parse_nexus(translated_document(5), ParserConfig(show_progress=True))
    assert len(sample) == 5


# ============================================================================
# Configuration
# ============================================================================


def test_failure_policy_from_string():
    assert ParserConfig(failure_policy="lenient").lenient
    assert not ParserConfig().lenient
    with pytest.raises(ValueError):
        ParserConfig(failure_policy="sometimes")


@pytest.mark.parametrize("field", ["workers", "chunksize"])
def test_counts_must_be_positive(field):
    with pytest.raises(ValueError):
        ParserConfig(**{field: 0})


# ============================================================================
# Bare Newick samples
# ============================================================================


def test_newick_trees_share_a_dictionary():
    sample = parse_newick_trees("(A,B);\n[comment]\n(B,C);\n")
    assert sample.names == ["tree_1", "tree_2"]
    assert sample.taxa.names == ("A", "B", "C")
    assert sample[1].taxa is sample[0].taxa


def test_newick_trees_lenient():
    sample = parse_newick_trees("(A,B);\n(E,E);\n(C,D);\n", LENIENT)
    assert sample.names == ["tree_1", "tree_3"]
    assert sample.taxa.names == ("A", "B", "C", "D")
    assert sample.errors[1].line == 2


def test_newick_trees_last_tree_without_terminator():
    text = "(A,B);\n(A,C)\n"
    with pytest.raises(MissingTerminatorError) as info:
        parse_newick_trees(text)
    assert info.value.tree_index == 1
    assert info.value.tree_name == "tree_2"

    sample = parse_newick_trees(text, LENIENT)
    assert sample.names == ["tree_1"]
    assert sample.taxa.names == ("A", "B")
    assert isinstance(sample.errors[1], MissingTerminatorError)


def test_worker_entry_point_requires_initialisation():
    with pytest.raises(RuntimeError):
        _parse_in_worker("(A,B);")
