from nexusparser import ParserConfig, read_newick, read_newick_trees, read_nexus


def test_read_newick(tmp_path):
    path = tmp_path / "tree.nwk"
    path.write_text("((A:1,B:2):0.5,C:3);\n")
    tree, taxa = read_newick(path)
    assert taxa.names == ("A", "B", "C")
    assert tree.branch_length(tree.children(tree.root)[0]) == 0.5


def test_read_newick_trees(tmp_path):
    path = tmp_path / "trees.nwk"
    path.write_text("(A,B);\n(B,(A,C));\n")
    sample = read_newick_trees(str(path))
    assert len(sample) == 2
    assert sample.taxa.names == ("A", "B", "C")


def test_read_nexus(data_dir):
    sample = read_nexus(data_dir / "nexus_t11_n20_translate.trees")
    assert len(sample) == 11
    assert len(sample.taxa) == 20


def test_read_nexus_with_config(data_dir):
    sample = read_nexus(
        data_dir / "nexus_t3_n10_comments.trees",
        ParserConfig(failure_policy="lenient"),
    )
    assert sample.complete
    assert len(sample) == 3


def test_read_non_utf8_encoding(tmp_path):
    path = tmp_path / "latin.nex"
    path.write_bytes(
        "#NEXUS\nBEGIN TREES;\n  TREE t = ('Pérez',B);\nEND;\n".encode("latin-1")
    )
    sample = read_nexus(path, encoding="latin-1")
    assert sample.taxa.names == ("Pérez", "B")
