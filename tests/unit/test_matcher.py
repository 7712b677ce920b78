"""
Tests for binding doc comments to declarations.

Driven through scan_all so the matcher sees the same merged stream as in
production.
"""

import time

import pytest

from doclink import ScanConfig, scan_all
from doclink.core.matcher import ignored_lines, merge_events
from doclink.core.models import (
    CommentRecord,
    CommentStyle,
    DeclarationKind,
)
from doclink.core.tokenizer import CodeToken, TokenKind


def targets(text: str, dialect: str = "java", config: ScanConfig | None = None):
    """Return (comment text, target kind, target name) per record."""
    result = scan_all(text, dialect, config)
    return [
        (
            r.comment.text.strip(),
            r.target.kind if r.target else None,
            r.target.name if r.target else None,
        )
        for r in result.records
    ]


class TestBinding:
    """Doc comments that document a declaration."""

    def test_class_and_method(self):
        text = "/** A */\nclass A {\n  /** m */\n  void m() {}\n}"
        assert targets(text) == [
            ("A", DeclarationKind.CLASS, "A"),
            ("m", DeclarationKind.METHOD, "m"),
        ]

    def test_line_doc_run_binds_once(self):
        text = "/// first\n/// second\nvoid f() {}"
        result = scan_all(text, "java")
        assert len(result.records) == 1
        assert result.records[0].comment.text == " first\n second"
        assert result.records[0].target.name == "f"

    def test_plain_comment_between_doc_and_declaration(self):
        text = "/** doc */\n// note\nvoid f() {}"
        assert targets(text) == [("doc", DeclarationKind.FUNCTION, "f")]

    def test_annotations_are_part_of_the_header(self):
        text = "/** doc */\n@Override\n@SuppressWarnings(\"x\")\npublic String toString() {}"
        assert targets(text)[0][2] == "toString"

    def test_c_prototype(self):
        text = "/** adds */\nint add(int a, int b);"
        assert targets(text, "c") == [("adds", DeclarationKind.FUNCTION, "add")]

    def test_cpp_pure_virtual_method(self):
        text = "class Shape {\n  /** draw */\n  virtual void draw() = 0;\n};"
        assert targets(text, "cpp") == [("draw", DeclarationKind.METHOD, "draw")]

    def test_java_interface_method_prototype(self):
        text = "interface Shape {\n  /** area */\n  double area();\n}"
        assert targets(text) == [("area", DeclarationKind.METHOD, "area")]

    def test_csharp_expression_bodied_member(self):
        text = "class Calc {\n  /// Doubles\n  public int Twice(int x) => x * 2;\n}"
        assert targets(text, "csharp") == [("Doubles", DeclarationKind.METHOD, "Twice")]

    def test_kotlin_expression_function_at_end_of_input(self):
        text = "/** area */\nfun area() = w * h\n"
        assert targets(text, "kotlin") == [("area", DeclarationKind.FUNCTION, "area")]

    def test_kotlin_expression_function_before_next_statement(self):
        text = "/** area */\nfun area() = w * h\nval b = 2\n"
        assert targets(text, "kotlin") == [("area", DeclarationKind.FUNCTION, "area")]

    def test_kotlin_property_is_not_a_declaration(self):
        text = "/** size */\nval size = 3\nfun f() {}"
        assert targets(text, "kotlin") == [("size", None, None)]

    def test_typescript_decorated_class(self):
        text = "/** component */\n@Component({ selector: 'app' })\nexport class Foo {\n}"
        assert targets(text, "typescript") == [("component", DeclarationKind.CLASS, "Foo")]

    def test_java_anonymous_class(self):
        text = "/** task */\nRunnable r = new Runnable() {\n};"
        assert targets(text) == [("task", DeclarationKind.CLASS, "")]

    def test_javascript_arrow_assignment(self):
        text = "/** handler */\nconst onClick = (event) => {\n};"
        assert targets(text, "javascript") == [("handler", DeclarationKind.FUNCTION, "onClick")]

    def test_rust_struct_and_fn(self):
        text = "/// Point\n#[derive(Debug)]\npub struct Point {\n}\n/// new\npub fn new() -> Point {\n}"
        assert targets(text, "rust") == [
            ("Point", DeclarationKind.CLASS, "Point"),
            ("new", DeclarationKind.FUNCTION, "new"),
        ]

    def test_rust_unit_struct(self):
        assert targets("/// marker\nstruct Marker;", "rust") == [
            ("marker", DeclarationKind.CLASS, "Marker")
        ]

    def test_depth_is_stack_depth_at_comment(self):
        text = "class A {\n  class B {\n    /** m */\n    void m() {}\n  }\n}"
        result = scan_all(text, "java")
        assert result.records[0].depth == 3
        assert result.records[0].target.depth == 3

    def test_doc_on_callback_inside_call(self):
        text = "items.forEach(\n  /** callback */\n  function (x) {\n  }\n);"
        assert targets(text, "javascript") == [
            ("callback", DeclarationKind.ANONYMOUS_FUNCTION, "")
        ]

    def test_callback_argument_inside_constructor(self):
        text = (
            "class H {\n  constructor() {\n    setTimeout(\n"
            "      /** cb */\n      function () {\n      }, 10);\n  }\n}"
        )
        record = scan_all(text, "javascript").records[0]
        assert record.target.kind is DeclarationKind.ANONYMOUS_FUNCTION
        assert record.target.name == ""
        assert record.depth == 3
        assert [ref.name for ref in record.target.scope_path] == ["", "H", "constructor"]

    def test_returned_anonymous_function_inside_constructor(self):
        text = (
            "class H {\n  constructor() {\n    /** factory */\n"
            "    return function () {\n    };\n  }\n}"
        )
        record = scan_all(text, "typescript").records[0]
        assert record.target.kind is DeclarationKind.ANONYMOUS_FUNCTION
        assert record.target.name == ""
        assert record.target.qualified_name == "H.constructor.<anonymous>"
        assert record.depth == 3


class TestOrphans:
    """Doc comments that document nothing."""

    def test_blank_line_separates_comment(self):
        assert targets("/** doc */\n\nvoid f() {}") == [("doc", None, None)]

    def test_second_comment_wins(self):
        text = "/** first */\n/** second */\nvoid f() {}"
        assert targets(text) == [
            ("first", None, None),
            ("second", DeclarationKind.FUNCTION, "f"),
        ]

    def test_comment_inside_header_is_held_until_bound(self):
        text = "/** method */\nvoid f(\n    /** the count */\n    int count) {}"
        assert targets(text) == [
            ("method", DeclarationKind.FUNCTION, "f"),
            ("the count", None, None),
        ]

    def test_trailing_comment_then_unrelated_code(self):
        text = "/** doc */ // trailing\nint x = 1;"
        result = scan_all(text, "java")
        assert len(result.records) == 1
        assert result.records[0].is_orphan

    def test_variable_declaration(self):
        assert targets("/** x */\nint x = 5;") == [("x", None, None)]

    def test_call_statement(self):
        assert targets("/** call */\nfoo(1, 2);", "c") == [("call", None, None)]

    def test_preprocessor_directive(self):
        text = "/** macro */\n#define MAX 10\nint f() {}"
        assert targets(text, "c") == [("macro", None, None)]

    def test_closing_brace(self):
        text = "class A {\n  void m() {}\n  /** dangling */\n}"
        result = scan_all(text, "java")
        assert result.records[0].is_orphan
        assert result.records[0].depth == 2

    def test_end_of_input(self):
        assert targets("void f() {}\n/** trailing doc */") == [("trailing doc", None, None)]

    def test_control_block(self):
        text = "void f() {\n  /** loop */\n  for (int i = 0; i < 3; i++) {\n  }\n}"
        assert targets(text) == [("loop", None, None)]

    def test_callback_argument(self):
        text = "/** loop */\nitems.forEach(function (x) {\n});"
        assert targets(text, "javascript") == [("loop", None, None)]

    def test_doc_before_later_argument_is_orphaned(self):
        text = "items.reduce(\n  /** start */\n  0, function (a, x) {\n  }\n);"
        assert targets(text, "javascript") == [("start", None, None)]

    def test_token_window_limit(self):
        text = "/** doc */\npublic static void main() {}"
        assert targets(text, config=ScanConfig(window_max_tokens=3)) == [("doc", None, None)]
        assert targets(text) == [("doc", DeclarationKind.FUNCTION, "main")]


class TestInnerComments:
    """Rust ``//!`` comments document their enclosing item."""

    TEXT = "//! Crate docs\n\nfn main() {\n    //! Inside main\n}"

    def test_inner_comments_bind_to_enclosing_item(self):
        result = scan_all(self.TEXT, "rust")
        crate, inside = result.records
        assert crate.target is None
        assert crate.depth == 1
        assert inside.target.kind is DeclarationKind.FUNCTION
        assert inside.target.name == "main"
        assert inside.depth == 2

    def test_inner_comments_can_be_disabled(self):
        config = ScanConfig(include_inner_comments=False)
        assert scan_all(self.TEXT, "rust", config).records == []

    def test_inner_comment_inside_header_waits_for_outer_window(self):
        text = "/// outer\nfn f(\n    //! odd\n) {}"
        result = scan_all(text, "rust")
        assert [r.comment.text.strip() for r in result.records] == ["outer", "odd"]
        assert result.records[0].target.name == "f"


class TestMarkerOverrides:
    """Configured prefixes replace the dialect's doc markers."""

    def test_custom_outer_marker(self):
        config = ScanConfig(outer_markers=["//>"])
        text = "//> adds\nint add(int a, int b);\n/** not doc */\nint x;"
        assert targets(text, "c", config) == [("adds", DeclarationKind.FUNCTION, "add")]

    def test_custom_inner_marker(self):
        config = ScanConfig(inner_markers=["//!"])
        result = scan_all("class A {\n  //! about A\n}", "java", config)
        record = result.records[0]
        assert record.target.kind is DeclarationKind.CLASS
        assert record.target.name == "A"
        assert record.depth == 2


class TestIgnoredLines:
    """Lines matching ignore patterns are invisible to the matcher."""

    TEXT = '/** doc */\nDEPRECATED("old")\nvoid f() {}'

    def test_without_pattern(self):
        assert targets(self.TEXT, "c")[0][2] == "DEPRECATED"

    def test_with_pattern(self):
        config = ScanConfig(ignore_line_patterns=[r"^DEPRECATED\("])
        assert targets(self.TEXT, "c", config) == [("doc", DeclarationKind.FUNCTION, "f")]

    def test_ignored_lines(self):
        assert ignored_lines("a\nskip me\nb\nskip", [r"^skip"]) == frozenset({2, 4})
        assert ignored_lines("a", []) == frozenset()


def test_merge_events_orders_by_offset():
    comment = CommentRecord(" c", CommentStyle.DOC, 5, 10, "java")
    tokens = [
        CodeToken("a", 0, 1, TokenKind.WORD),
        CodeToken("b", 12, 13, TokenKind.WORD),
    ]
    merged = list(merge_events([comment], tokens))
    assert [item.start for item in merged] == [0, 5, 12]


@pytest.mark.parametrize(
    "dialect",
    ["c", "cpp", "csharp", "java", "javascript", "typescript", "kotlin", "rust"],
)
def test_only_doc_comments_produce_records(dialect):
    text = "// plain\n/* plain */\nint x;\n"
    assert scan_all(text, dialect).records == []


def test_deep_nesting_scans_in_linear_time():
    depth = 20_000
    text = "{\n" * depth + "/** deep */\nfunction g() {}\n" + "}\n" * depth
    started = time.perf_counter()
    result = scan_all(text, "javascript")
    elapsed = time.perf_counter() - started

    record = result.records[0]
    assert record.depth == depth + 1
    assert record.target.name == "g"
    assert len(record.target.scope_path) == depth + 1
    assert result.diagnostics == []
    assert elapsed < 10.0
