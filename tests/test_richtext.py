"""
StackIt Backend — Rich Text Tests
===================================

What we test:
    ✅ Sanitizer strips scripts, event handlers and unsafe URLs
    ✅ Parser canonicalizes markup (loose text, mark order, code blocks)
    ✅ Document nodes render/serialize/count consistently
    ✅ Language registry aliases and plaintext fallback
    ✅ prepare_description limits (characters, bytes, empty content)
"""

import pytest

from stackit.exceptions import ValidationError
from stackit.richtext import (
    BulletList,
    CodeBlock,
    Document,
    HardBreak,
    Heading,
    HorizontalRule,
    Image,
    LanguageRegistry,
    Link,
    ListItem,
    OrderedList,
    Paragraph,
    Text,
    build_document,
    languages,
    parse_html,
    prepare_description,
    sanitize_html,
)


class TestSanitizer:
    def test_editor_markup_survives(self):
        html = "<p><strong>bold</strong> and <em>italic</em></p>"
        assert sanitize_html(html) == html

    def test_script_dropped_with_content(self):
        assert sanitize_html("<p>hi</p><script>alert(1)</script>") == "<p>hi</p>"

    def test_style_dropped_with_content(self):
        assert sanitize_html("<style>p{color:red}</style><p>x</p>") == "<p>x</p>"

    def test_event_handlers_removed(self):
        assert sanitize_html('<p onclick="steal()">hi</p>') == "<p>hi</p>"

    def test_unknown_tags_unwrapped(self):
        assert sanitize_html("<div><p>kept</p></div>") == "<p>kept</p>"

    def test_javascript_href_removed(self):
        assert "javascript" not in sanitize_html('<a href="javascript:alert(1)">x</a>')

    def test_data_href_removed(self):
        assert "data:" not in sanitize_html('<a href="data:text/html;base64,PHNjcmlwdD4=">x</a>')

    def test_svg_data_image_removed(self):
        assert "data:" not in sanitize_html('<img src="data:image/svg+xml;base64,PHN2Zz4=">')

    def test_empty_input(self):
        assert sanitize_html("") == ""


class TestParser:
    def test_round_trip_of_canonical_html(self):
        assert parse_html("<p>because</p>").render() == "<p>because</p>"

    def test_loose_text_is_wrapped(self):
        assert parse_html("hello <strong>world</strong>").render() == "<p>hello <strong>world</strong></p>"

    def test_marks_are_nested_canonically(self):
        assert parse_html("<p><em><b>x</b></em></p>").render() == "<p><strong><em>x</em></strong></p>"

    def test_adjacent_text_with_same_marks_merges(self):
        document = parse_html("<p><b>a</b><strong>b</strong></p>")
        paragraph = document.children[0]
        assert paragraph.children == [Text("ab", ("bold",))]

    def test_code_block_language_is_resolved(self):
        document = parse_html('<pre><code class="language-js">let x = 1 &lt; 2;</code></pre>')

        block = document.children[0]
        assert isinstance(block, CodeBlock)
        assert block.language == "javascript"
        assert block.code == "let x = 1 < 2;"
        assert block.render() == '<pre><code class="language-javascript">let x = 1 &lt; 2;</code></pre>'

    def test_code_block_without_language_is_plaintext(self):
        assert parse_html("<pre><code>x</code></pre>").children[0].language == "plaintext"

    def test_lists(self):
        html = '<ol start="3"><li><p>one</p></li><li>two</li></ol>'
        assert parse_html(html).render() == '<ol start="3"><li><p>one</p></li><li><p>two</p></li></ol>'

    def test_whitespace_between_blocks_is_dropped(self):
        assert parse_html("<p>a</p>\n  <p>b</p>").render() == "<p>a</p><p>b</p>"

    def test_link_gets_safe_rel(self):
        html = parse_html('<p><a href="https://example.com">site</a></p>').render()
        assert html == (
            '<p><a href="https://example.com" target="_blank" '
            'rel="noopener noreferrer nofollow">site</a></p>'
        )


class TestDocumentModel:
    def test_serialize(self):
        document = Document([
            Heading(level=2, children=[Text("Title")]),
            Paragraph([Text("hi", ("bold",)), HardBreak()]),
            HorizontalRule(),
        ])

        assert document.serialize() == {
            "type": "doc",
            "content": [
                {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Title"}]},
                {"type": "paragraph", "content": [
                    {"type": "text", "text": "hi", "marks": [{"type": "bold"}]},
                    {"type": "hardBreak"},
                ]},
                {"type": "horizontalRule"},
            ],
        }

    def test_text_length_counts_breaks_rules_and_images(self):
        document = Document([
            Paragraph([Text("ab"), HardBreak(), Text("c")]),
            HorizontalRule(),
            Paragraph([Image(src="https://x.test/a.png")]),
        ])
        assert document.text_length() == 6

    def test_heading_level_is_bounded(self):
        with pytest.raises(ValueError):
            Heading(level=4)

    def test_text_is_escaped(self):
        assert Paragraph([Text("<b>&")]).render() == "<p>&lt;b&gt;&amp;</p>"

    def test_image_attributes_are_escaped(self):
        assert Image(src='https://x.test/a.png?a=1&b="2"').render() == (
            '<img src="https://x.test/a.png?a=1&amp;b=&quot;2&quot;">'
        )

    def test_walk_visits_every_node(self):
        link = Link(href="https://x.test", children=[Text("x")])
        document = Document([BulletList([ListItem([Paragraph([link])])])])

        kinds = [node.type for node in document.walk()]
        assert kinds == ["bulletList", "listItem", "paragraph", "link", "text"]

    def test_ordered_list_default_start_not_rendered(self):
        assert OrderedList([ListItem([Paragraph([Text("a")])])]).render() == "<ol><li><p>a</p></li></ol>"

    def test_has_content(self):
        assert not Document([Paragraph([Text("   ")]), HorizontalRule()]).has_content()
        assert Document([Paragraph([Image(src="https://x.test/a.png")])]).has_content()


class TestLanguages:
    @pytest.mark.parametrize("name, expected", [
        ("js", "javascript"),
        ("JavaScript", "javascript"),
        ("ts", "typescript"),
        ("C++", "cpp"),
        ("py", "python"),
        ("sql", "sql"),
        ("cobol", "plaintext"),
        (None, "plaintext"),
        ("", "plaintext"),
    ])
    def test_resolve(self, name, expected):
        assert languages.resolve(name) == expected

    def test_choices_start_with_fallback(self):
        assert languages.choices()[0] == ("plaintext", "plaintext")

    def test_custom_registry(self):
        registry = LanguageRegistry()
        registry.register("go", label="Go", aliases=("golang",))

        assert registry.resolve("GoLang") == "go"
        assert registry.is_known("go")
        assert not registry.is_known("rust")
        assert registry.css_class("golang") == "language-go"


class TestPrepareDescription:
    def test_returns_canonical_html(self):
        assert prepare_description("<p>because</p>") == "<p>because</p>"

    def test_character_limit(self):
        assert prepare_description(f"<p>{'a' * 500}</p>", max_chars=500)
        with pytest.raises(ValidationError) as exc_info:
            prepare_description(f"<p>{'a' * 501}</p>", max_chars=500)
        assert exc_info.value.field == "description"

    def test_markup_does_not_count_towards_limit(self):
        html = f"<p><strong>{'a' * 250}</strong><em>{'b' * 250}</em></p>"
        assert prepare_description(html, max_chars=500)

    def test_byte_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            prepare_description("<p>" + "é" * 600 + "</p>", max_chars=10_000, max_bytes=1024)
        assert exc_info.value.context["max_bytes"] == 1024

    @pytest.mark.parametrize("html", ["<p> </p>", "<script>x</script>", "<p><br></p>"])
    def test_no_visible_content(self, html):
        with pytest.raises(ValidationError):
            prepare_description(html)

    def test_image_only_is_content(self):
        assert prepare_description('<p><img src="https://x.test/a.png"></p>') == (
            '<p><img src="https://x.test/a.png"></p>'
        )

    def test_build_document_skips_limits(self):
        assert build_document(f"<p>{'a' * 1000}</p>").text_length() == 1000
