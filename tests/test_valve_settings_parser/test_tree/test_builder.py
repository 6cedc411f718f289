"""Comprehensive tests for the recursive-descent tree builder.

Tests document structure, error detection with line numbers, and the
ParseResult container.
"""

from typing import List

import pytest

from valve_settings_parser.shared import (
    DiagnosticSeverity,
    MalformedDocument,
    TokenError,
)
from valve_settings_parser.tree import (
    Node,
    NodeBuilder,
    ParseResult,
    SettingsTreeBuilder,
)


def build(lines: List[str], **kwargs) -> Node:
    return SettingsTreeBuilder(**kwargs).build(lines)


def leaf(key: str, value: str) -> Node:
    return Node(key=key, value=value)


class TestValidDocuments:
    """Test building trees from valid settings text."""

    def test_leaf_document(self) -> None:
        root = build(['"k" "v"'])

        assert root.key == "k"
        assert root.value == "v"
        assert root.children is None

    def test_nested_document_on_one_line(self) -> None:
        root = build([
            '"test" { "testkey" "testvalue" "testkeywithchildren" { '
            '"testkey2" "testvalue2" "testkey3" "testvalue3" } }'
        ])

        assert root.key == "test"
        assert list(root.children) == ["testkey", "testkeywithchildren"]
        assert root["testkey"].value == "testvalue"
        nested = root["testkeywithchildren"]
        assert nested.is_block
        assert list(nested.children) == ["testkey2", "testkey3"]
        assert nested["testkey2"].value == "testvalue2"
        assert nested["testkey3"].value == "testvalue3"

    def test_multiline_document_with_comments(self) -> None:
        root = build([
            "// Game modes",
            '"gameTypes"  // top level',
            "{",
            '\t"classic"',
            "\t{",
            '\t\t"maxplayers"\t"10"',
            "\t}",
            "}",
        ])

        assert root.find("classic/maxplayers").value == "10"

    def test_empty_block(self) -> None:
        root = build(['"root" {}'])

        assert root.is_block
        assert dict(root.children) == {}

    def test_duplicate_keys_keep_last_value_at_last_position(self) -> None:
        root = build(['"root" { "a" "1" "b" "2" "a" "3" }'])

        assert list(root.children) == ["b", "a"]
        assert root["a"].value == "3"

    def test_duplicate_block_replaces_leaf(self) -> None:
        root = build(['"root" { "a" "1" "a" { "x" "y" } }'])

        assert root["a"].is_block
        assert root["a"]["x"].value == "y"

    def test_escaped_quotes_are_kept_verbatim(self) -> None:
        root = build(['"quote" "say \\"hi\\""'])

        assert root.value == 'say \\"hi\\"'

    def test_trailing_top_level_entries_merge_into_block_root(self) -> None:
        root = build(['"root" { "a" "1" }', '"b" "2"', '"c" { "d" "3" }'])

        assert list(root.children) == ["a", "b", "c"]
        assert root["c"]["d"].value == "3"

    def test_trailing_top_level_entries_are_ignored_by_leaf_root(self) -> None:
        root = build(['"a" "1"', '"b" "2"'])

        assert root == leaf("a", "1")

    def test_builder_is_reusable(self) -> None:
        builder = SettingsTreeBuilder()

        assert builder.build(['"a" "1"']).key == "a"
        assert builder.build(['"b" { }']).key == "b"


class TestMalformedDocuments:
    """Test structural error detection."""

    def test_missing_closing_brace(self) -> None:
        with pytest.raises(MalformedDocument, match="imbalance of braces") as exc_info:
            build(['"root" { "key" "value"'])

        assert exc_info.value.line_number == 1

    def test_key_without_value_before_close(self) -> None:
        with pytest.raises(MalformedDocument, match="found an end marker") as exc_info:
            build(['"root" {', '  "key"', "}"])

        assert exc_info.value.line_number == 3

    def test_comment_hides_value(self) -> None:
        with pytest.raises(MalformedDocument, match="imbalance of key-value pairs"):
            build(['"root" // "value hidden by comment"'])

    def test_block_without_key(self) -> None:
        with pytest.raises(MalformedDocument, match="Expected a key") as exc_info:
            build(['"root" {', "  {", "  }", "}"])

        assert exc_info.value.line_number == 2

    def test_block_as_first_token(self) -> None:
        with pytest.raises(MalformedDocument, match="Expected a key"):
            build(["{ }"])

    def test_extra_closing_brace(self) -> None:
        with pytest.raises(MalformedDocument, match="no block is open") as exc_info:
            build(['"root" { "a" "b" }', "}"])

        assert exc_info.value.line_number == 2

    def test_extra_opening_brace(self) -> None:
        with pytest.raises(MalformedDocument, match="imbalance of braces"):
            build(['"root" {', '  "inner" {', '    "a" "b"', "}"])

    def test_deep_unbalanced_braces(self) -> None:
        with pytest.raises(MalformedDocument):
            build(['"a" { "b" { "c" { "d" "e" } }'])

    def test_empty_document(self) -> None:
        with pytest.raises(MalformedDocument, match="no entries"):
            build([])

    def test_comment_only_document(self) -> None:
        with pytest.raises(MalformedDocument, match="no entries") as exc_info:
            build(["// nothing here", ""])

        assert exc_info.value.line_number == 2

    def test_empty_key_is_malformed(self) -> None:
        with pytest.raises(MalformedDocument, match="Node must have a key") as exc_info:
            build(['"root" {', '  "" "value"', "}"])

        assert exc_info.value.line_number == 2

    def test_empty_root_key_is_malformed(self) -> None:
        with pytest.raises(MalformedDocument, match="Node must have a key"):
            build(['"" { }'])

    def test_message_includes_line(self) -> None:
        with pytest.raises(MalformedDocument) as exc_info:
            build(['"root" {', '"key"', "}"])

        assert str(exc_info.value).endswith("(line 3)")


class TestTokenErrors:
    """Test propagation of tokenizer errors."""

    def test_unquoted_key(self) -> None:
        with pytest.raises(TokenError) as exc_info:
            build(['unexpectedkey "value"'])

        error = exc_info.value
        assert "invalid character" in error.cause
        assert error.character == "u"
        assert error.offset == 0
        assert error.line_text == 'unexpectedkey "value"'
        assert error.line_number == 1

    def test_token_error_is_malformed_document(self) -> None:
        with pytest.raises(MalformedDocument):
            build(['"root" { / }'])

    def test_lone_slash_in_nested_block(self) -> None:
        with pytest.raises(TokenError, match="single slash") as exc_info:
            build(['"root" {', '  "a" "b" /', "}"])

        assert exc_info.value.line_number == 2

    def test_token_error_message_contains_diagnostic(self) -> None:
        with pytest.raises(TokenError) as exc_info:
            build(['"root" "unterminated'])

        message = str(exc_info.value)
        assert "There was no ending to the string." in message
        assert "Full line: \"root\" \"unterminated" in message
        assert "Line: 1" in message


class TestDepthLimit:
    """Test the optional nesting guard."""

    DEEP = ['"a" { "b" { "c" { "d" "e" } } }']

    def test_no_limit_by_default(self) -> None:
        builder = SettingsTreeBuilder()
        builder.build(self.DEEP)

        assert builder.max_depth_seen == 3

    def test_limit_allows_documents_within_depth(self) -> None:
        assert build(self.DEEP, max_depth=3).find("b/c/d").value == "e"

    def test_limit_rejects_deeper_documents(self) -> None:
        with pytest.raises(MalformedDocument, match="maximum depth of 2"):
            build(self.DEEP, max_depth=2)

    def test_nesting_beyond_stack_is_malformed(self) -> None:
        text = '"k" {' * 1500 + '"a" "b"' + "}" * 1500

        with pytest.raises(MalformedDocument, match="nesting is too deep") as exc_info:
            build([text])

        assert exc_info.value.line_number == 1
        assert exc_info.value.__cause__ is None

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError, match="max_depth must be >= 1"):
            SettingsTreeBuilder(max_depth=0)


class TestBuilderCounters:
    """Test counters exposed for metrics."""

    def test_counters_after_build(self) -> None:
        builder = SettingsTreeBuilder()
        builder.build(['"root" {', '  "a" "1"', '  "b" "2"', "}"])

        assert builder.nodes_built == 3
        assert builder.lines_processed == 4
        assert builder.tokens_consumed == 8
        assert builder.max_depth_seen == 1

    def test_counters_before_build(self) -> None:
        builder = SettingsTreeBuilder()

        assert builder.tokens_consumed == 0
        assert builder.lines_processed == 0
        assert builder.characters_processed == 0


class TestRoundTrip:
    """Test that serialized trees parse back to equal trees."""

    def test_round_trip_nested_tree(self) -> None:
        inner = (
            NodeBuilder()
            .set_key("inner key")
            .start_child_block()
            .add_child(leaf("x", "with spaces and // slashes"))
            .add_child(Node(key="empty", children={}))
            .build()
        )
        tree = Node(key="root", children={"inner key": inner, "z": leaf("z", "")})

        assert build(tree.serialize().splitlines()) == tree

    def test_canonical_text_is_stable(self) -> None:
        text = '"a" {\n  "b" "c"\n  "d" {\n    "e" "f"\n  }\n}\n'

        assert build(text.splitlines()).serialize() == text


class TestParseResult:
    """Test the ParseResult container."""

    def test_successful_result(self) -> None:
        root = build(['"root" { "a" "1" }'])
        result = ParseResult(root=root, source_name="gamemodes.txt")

        assert result.success
        assert result.node_count == 2
        assert result.line_number is None
        assert result.unwrap() is root
        assert not result.has_errors()

    def test_failed_result(self) -> None:
        error = MalformedDocument("broken", 7)
        result = ParseResult(success=False, error=error)
        result.add_diagnostic(DiagnosticSeverity.ERROR, "broken", "tree_builder", 7)

        assert result.node_count == 0
        assert result.line_number == 7
        assert result.has_errors()
        assert len(result.get_diagnostics_by_severity(DiagnosticSeverity.ERROR)) == 1
        with pytest.raises(MalformedDocument):
            result.unwrap()

    def test_result_consistency_validation(self) -> None:
        with pytest.raises(ValueError, match="must carry a root node"):
            ParseResult()
        with pytest.raises(ValueError, match="must carry an error"):
            ParseResult(success=False)

    def test_unwrap_without_root_or_error(self) -> None:
        result = ParseResult(root=leaf("k", "v"))
        result.root = None

        with pytest.raises(ValueError, match="neither a root node nor an error"):
            result.unwrap()

    def test_summary(self) -> None:
        result = ParseResult(success=False, error=MalformedDocument("broken", 2))
        summary = result.summary()

        assert summary["success"] is False
        assert summary["root_key"] is None
        assert summary["error"] == "broken (line 2)"
        assert summary["line_number"] == 2
        assert "performance" in summary
