import pytest

from nexusparser.exceptions import (
    MissingTerminatorError,
    UnexpectedCommandError,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from nexusparser.parser.nexus_scanner import (
    iter_commands,
    scan_blocks,
    skip_header,
    split_statements,
)


def test_blocks_in_file_order():
    text = "#NEXUS\nBEGIN TAXA;\n DIMENSIONS NTAX=1;\nEND;\nbegin trees;\nend;\n"
    blocks = scan_blocks(text)

    assert [block.name for block in blocks] == ["TAXA", "trees"]
    assert [block.kind for block in blocks] == ["TAXA", "TREES"]
    assert blocks[0].body(text).strip() == "DIMENSIONS NTAX=1;"
    assert blocks[0].begin == text.index("BEGIN")


def test_header_is_optional_and_case_insensitive():
    assert [b.kind for b in scan_blocks("BEGIN TREES; END;")] == ["TREES"]
    assert [b.kind for b in scan_blocks("#nexus begin Trees; End;")] == ["TREES"]


def test_leading_comments_before_header():
    text = "[generated] #NEXUS\nBEGIN TREES; END;"
    assert skip_header(text) == text.index("\n")
    assert len(scan_blocks(text)) == 1


def test_unknown_and_repeated_blocks_are_kept():
    text = "BEGIN DATA; MATRIX x ACGT; END; BEGIN TREES; END; BEGIN trees; ENDBLOCK;"
    assert [block.name for block in scan_blocks(text)] == ["DATA", "TREES", "trees"]


def test_terminators_in_quotes_and_comments_do_not_end_a_block():
    text = "BEGIN notes; TEXT 'END;' [END;]; END;"
    (block,) = scan_blocks(text)
    assert block.body(text).strip() == "TEXT 'END;' [END;];"


def test_empty_document():
    assert scan_blocks("") == []
    assert scan_blocks("#NEXUS\n[nothing here]\n") == []


def test_unterminated_block():
    with pytest.raises(UnexpectedEndOfInputError) as info:
        scan_blocks("#NEXUS\nBEGIN TAXA; DIMENSIONS NTAX=1;")
    assert info.value.position == 7


def test_unterminated_command():
    with pytest.raises(UnexpectedEndOfInputError):
        scan_blocks("BEGIN TAXA")


def test_command_outside_a_block():
    with pytest.raises(UnexpectedCommandError):
        scan_blocks("#NEXUS\nDIMENSIONS NTAX=1;")


def test_begin_without_a_name():
    with pytest.raises(UnexpectedTokenError):
        scan_blocks("BEGIN ; END;")


def test_iter_commands():
    text = "DIMENSIONS NTAX=3; TAXLABELS A B C;"
    commands = list(iter_commands(text, 0, len(text)))

    assert [command.name for command in commands] == ["DIMENSIONS", "TAXLABELS"]
    assert text[commands[0].args_start : commands[0].end].strip() == "NTAX=3"
    assert text[commands[1].end] == ";"


def test_keywords_stop_at_equals_and_comments():
    text = "title=x; tree[c] t = (A,B);"
    assert [c.keyword for c in iter_commands(text, 0, len(text))] == ["title", "tree"]


def test_split_statements():
    text = "(A,B);\n(C,D); [c]\n"
    assert list(split_statements(text)) == [(0, 6), (7, 13)]


def test_split_statements_respects_quotes():
    text = "('x;y',B);"
    assert list(split_statements(text)) == [(0, len(text))]


def test_split_statements_can_keep_an_unterminated_tail():
    text = "(A,B);\n(C,D)\n"
    assert list(split_statements(text, keep_unterminated=True)) == [(0, 6), (7, len(text))]


@pytest.mark.parametrize("following", ["", "BEGIN TAXA;\n DIMENSIONS NTAX=2;\nEND;\n"])
def test_command_running_into_the_end_of_its_block(following):
    text = "#NEXUS\nBEGIN TREES;\n TREE t = (A,B)\nEND;\n" + following
    with pytest.raises(MissingTerminatorError) as info:
        scan_blocks(text)
    assert info.value.position == text.index("TREE")


def test_end_inside_a_line_is_not_a_block_end():
    text = "BEGIN notes; TEXT the END; END;"
    assert len(scan_blocks(text)) == 1
