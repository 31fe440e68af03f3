import pytest

from nexusparser.exceptions import (
    DuplicateNameError,
    TaxaCountMismatchError,
    UnexpectedCommandError,
    UnexpectedTokenError,
)
from nexusparser.parser.nexus_scanner import scan_blocks
from nexusparser.parser.taxa_block import parse_taxa_block


def parse_block(body):
    text = f"#NEXUS\nBEGIN TAXA;\n{body}\nEND;\n"
    return parse_taxa_block(text, scan_blocks(text)[0])


def test_ids_follow_taxlabels_order():
    taxa = parse_block("DIMENSIONS NTAX=3; TAXLABELS C A B;")
    assert taxa.names == ("C", "A", "B")
    assert taxa.id_of("B") == 2
    assert taxa.frozen


@pytest.mark.parametrize("count", [0, 1, 5, 50])
def test_declared_count_matches_labels(count):
    labels = " ".join(f"taxon_{i}" for i in range(count))
    taxa = parse_block(f"DIMENSIONS NTAX={count}; TAXLABELS {labels};")
    assert len(taxa) == count
    assert [taxa.id_of(f"taxon_{i}") for i in range(count)] == list(range(count))


def test_lowercase_keywords_quotes_and_spaces():
    taxa = parse_block("dimensions ntax = 2;\ntaxlabels 'Homo sapiens' [a comment] Pan;")
    assert taxa.names == ("Homo sapiens", "Pan")


def test_count_mismatch():
    with pytest.raises(TaxaCountMismatchError) as info:
        parse_block("DIMENSIONS NTAX=3; TAXLABELS A B;")
    assert "NTAX=3" in info.value.message


def test_duplicate_label():
    with pytest.raises(DuplicateNameError):
        parse_block("DIMENSIONS NTAX=2; TAXLABELS A A;")


@pytest.mark.parametrize(
    "body",
    [
        "TAXLABELS A B; DIMENSIONS NTAX=2;",
        "DIMENSIONS NTAX=2;",
        "TAXLABELS A B;",
        "",
        "DIMENSIONS NTAX=1; TAXLABELS A; TITLE extra;",
        "DIMENSIONS NCHAR=1; TAXLABELS A;",
    ],
)
def test_unexpected_commands(body):
    with pytest.raises(UnexpectedCommandError):
        parse_block(body)


def test_non_integer_count():
    with pytest.raises(UnexpectedTokenError):
        parse_block("DIMENSIONS NTAX=three; TAXLABELS A;")
