"""
HTML → Document parser.

Expects sanitized HTML (see sanitizer.py) and builds the node tree with
BeautifulSoup. Loose inline content at the top level or inside list items is
wrapped in a Paragraph, the same normalization the editor applies, so
`parse_html(x).render()` is the canonical form of `x`.
"""

from typing import Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString
from bs4.element import Tag as Element

from stackit.richtext.document import (
    BulletList,
    CodeBlock,
    Document,
    HardBreak,
    Heading,
    HorizontalRule,
    Image,
    Link,
    ListItem,
    Node,
    OrderedList,
    Paragraph,
    Text,
)
from stackit.richtext.languages import PLAINTEXT

INLINE_MARKS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "u": "underline",
    "s": "strike",
    "strike": "strike",
    "del": "strike",
    "mark": "highlight",
    "code": "code",
}

BLOCK_TAGS = frozenset({"p", "h1", "h2", "h3", "ul", "ol", "li", "pre", "hr"})


def parse_html(html: str) -> Document:
    soup = BeautifulSoup(html or "", "html.parser")
    return Document(children=_parse_blocks(soup.children))


# ── Blocks ────────────────────────────────────────────────────────────────


def _parse_blocks(elements: Iterable) -> List[Node]:
    blocks: List[Node] = []
    pending: List[Node] = []

    def flush() -> None:
        if any(node.has_content() for node in pending):
            blocks.append(Paragraph(children=_merge_text(pending)))
        pending.clear()

    for element in elements:
        if isinstance(element, Element) and element.name in BLOCK_TAGS:
            flush()
            block = _parse_block(element)
            if block is not None:
                blocks.append(block)
        else:
            pending.extend(_parse_inline(element, ()))
    flush()
    return blocks


def _parse_block(element: Element) -> Optional[Node]:
    name = element.name
    if name == "p":
        return Paragraph(children=_parse_inline_children(element))
    if name in ("h1", "h2", "h3"):
        return Heading(level=int(name[1]), children=_parse_inline_children(element))
    if name == "ul":
        return BulletList(items=_parse_list_items(element))
    if name == "ol":
        return OrderedList(items=_parse_list_items(element), start=_parse_start(element))
    if name == "li":
        # A stray <li> outside any list becomes a one-item bullet list
        return BulletList(items=[ListItem(children=_parse_blocks(element.children))])
    if name == "pre":
        return _parse_code_block(element)
    if name == "hr":
        return HorizontalRule()
    return None


def _parse_list_items(element: Element) -> List[ListItem]:
    return [
        ListItem(children=_parse_blocks(child.children))
        for child in element.find_all("li", recursive=False)
    ]


def _parse_start(element: Element) -> int:
    try:
        start = int(element.get("start", 1))
    except (TypeError, ValueError):
        return 1
    return start if start > 0 else 1


def _parse_code_block(element: Element) -> CodeBlock:
    code = element.find("code")
    language = PLAINTEXT
    if code is not None:
        for css_class in code.get("class") or ():
            if css_class.startswith("language-"):
                language = css_class[len("language-"):]
                break
    return CodeBlock(code=element.get_text(), language=language)


# ── Inline ────────────────────────────────────────────────────────────────


def _parse_inline_children(element: Element, marks: Tuple[str, ...] = ()) -> List[Node]:
    nodes: List[Node] = []
    for child in element.children:
        nodes.extend(_parse_inline(child, marks))
    return _merge_text(nodes)


def _parse_inline(element, marks: Tuple[str, ...]) -> List[Node]:
    if isinstance(element, Comment):
        return []
    if isinstance(element, NavigableString):
        text = str(element)
        return [Text(text=text, marks=marks)] if text else []
    if not isinstance(element, Element):
        return []

    name = element.name
    if name == "br":
        return [HardBreak()]
    if name == "img":
        src = element.get("src")
        if not src:
            return []
        return [Image(src=src, alt=element.get("alt"), title=element.get("title"))]
    if name == "a":
        children = _parse_inline_children(element, marks)
        href = element.get("href")
        if not href:
            return children
        return [Link(href=href, children=children)]
    if name in INLINE_MARKS:
        mark = INLINE_MARKS[name]
        nested = marks if mark in marks else marks + (mark,)
        return _parse_inline_children(element, nested)
    # Unknown wrappers, and block markup nested in inline context, keep only their content
    return _parse_inline_children(element, marks)


def _merge_text(nodes: List[Node]) -> List[Node]:
    """Joins adjacent Text nodes that carry identical marks."""
    merged: List[Node] = []
    for node in nodes:
        previous = merged[-1] if merged else None
        if (
            isinstance(node, Text)
            and isinstance(previous, Text)
            and previous.marks == node.marks
        ):
            merged[-1] = Text(text=previous.text + node.text, marks=node.marks)
        else:
            merged.append(node)
    return merged
