"""
Rich-text document model.

A question description is a tree of nodes. Every node implements the same
three-method contract:

    render()       → canonical HTML for storage and display
    serialize()    → JSON-able dict (editor document format)
    text_length()  → characters counted against the description limit

Block variants:  Paragraph, Heading, BulletList, OrderedList, ListItem,
                 CodeBlock, Image, HorizontalRule
Inline variants: Text (with marks), Link, HardBreak, Image

The language of a code block is an attribute of CodeBlock, resolved through
the language registry, not a node type of its own.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from html import escape
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from stackit.richtext.languages import languages

# Mark name → HTML tag, in canonical nesting order (outermost first)
MARK_TAGS: Dict[str, str] = {
    "bold": "strong",
    "italic": "em",
    "underline": "u",
    "strike": "s",
    "highlight": "mark",
    "code": "code",
}
MARK_ORDER = {name: index for index, name in enumerate(MARK_TAGS)}

HEADING_LEVELS = (1, 2, 3)

# Rendered on every link, matching what the editor emits
LINK_REL = "noopener noreferrer nofollow"


def _attr(value: Any) -> str:
    return escape(str(value), quote=True)


def _render_all(nodes: List["Node"]) -> str:
    return "".join(node.render() for node in nodes)


def _serialize_all(nodes: List["Node"]) -> List[Dict[str, Any]]:
    return [node.serialize() for node in nodes]


def _length_of(nodes: List["Node"]) -> int:
    return sum(node.text_length() for node in nodes)


def sort_marks(marks) -> Tuple[str, ...]:
    """Deduplicates marks and orders them canonically."""
    return tuple(sorted(set(marks), key=MARK_ORDER.__getitem__))


class Node(ABC):
    """Common contract for every document node."""

    type: ClassVar[str]

    @abstractmethod
    def render(self) -> str:
        """Canonical HTML for this node."""

    @abstractmethod
    def serialize(self) -> Dict[str, Any]:
        """Editor-style JSON representation."""

    def text_length(self) -> int:
        return 0

    def has_content(self) -> bool:
        """True when the node shows something besides whitespace."""
        return False


# ══════════════════════════════════════════════════════════════════════════
# Inline nodes
# ══════════════════════════════════════════════════════════════════════════


@dataclass
class Text(Node):
    type: ClassVar[str] = "text"

    text: str
    marks: Tuple[str, ...] = ()

    def __post_init__(self):
        self.marks = sort_marks(self.marks)

    def render(self) -> str:
        html = escape(self.text, quote=False)
        for mark in reversed(self.marks):
            tag = MARK_TAGS[mark]
            html = f"<{tag}>{html}</{tag}>"
        return html

    def serialize(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "text": self.text}
        if self.marks:
            data["marks"] = [{"type": mark} for mark in self.marks]
        return data

    def text_length(self) -> int:
        return len(self.text)

    def has_content(self) -> bool:
        return bool(self.text.strip())


@dataclass
class Link(Node):
    type: ClassVar[str] = "link"

    href: str
    children: List[Node] = field(default_factory=list)

    def render(self) -> str:
        return (
            f'<a href="{_attr(self.href)}" target="_blank" rel="{LINK_REL}">'
            f"{_render_all(self.children)}</a>"
        )

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "attrs": {"href": self.href},
            "content": _serialize_all(self.children),
        }

    def text_length(self) -> int:
        return _length_of(self.children)

    def has_content(self) -> bool:
        return any(child.has_content() for child in self.children)


@dataclass
class HardBreak(Node):
    type: ClassVar[str] = "hardBreak"

    def render(self) -> str:
        return "<br>"

    def serialize(self) -> Dict[str, Any]:
        return {"type": self.type}

    def text_length(self) -> int:
        return 1


@dataclass
class Image(Node):
    """Image by URL or base64 data URI; valid inline and as a block."""

    type: ClassVar[str] = "image"

    src: str
    alt: Optional[str] = None
    title: Optional[str] = None

    def render(self) -> str:
        attrs = f'src="{_attr(self.src)}"'
        if self.alt:
            attrs += f' alt="{_attr(self.alt)}"'
        if self.title:
            attrs += f' title="{_attr(self.title)}"'
        return f"<img {attrs}>"

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "attrs": {"src": self.src, "alt": self.alt, "title": self.title},
        }

    def text_length(self) -> int:
        return 1

    def has_content(self) -> bool:
        return True


# ══════════════════════════════════════════════════════════════════════════
# Block nodes
# ══════════════════════════════════════════════════════════════════════════


@dataclass
class Paragraph(Node):
    type: ClassVar[str] = "paragraph"

    children: List[Node] = field(default_factory=list)

    def render(self) -> str:
        return f"<p>{_render_all(self.children)}</p>"

    def serialize(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.children:
            data["content"] = _serialize_all(self.children)
        return data

    def text_length(self) -> int:
        return _length_of(self.children)

    def has_content(self) -> bool:
        return any(child.has_content() for child in self.children)


@dataclass
class Heading(Node):
    type: ClassVar[str] = "heading"

    level: int = 1
    children: List[Node] = field(default_factory=list)

    def __post_init__(self):
        if self.level not in HEADING_LEVELS:
            raise ValueError(f"Heading level must be one of {HEADING_LEVELS}, got {self.level}")

    def render(self) -> str:
        return f"<h{self.level}>{_render_all(self.children)}</h{self.level}>"

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "attrs": {"level": self.level},
            "content": _serialize_all(self.children),
        }

    def text_length(self) -> int:
        return _length_of(self.children)

    def has_content(self) -> bool:
        return any(child.has_content() for child in self.children)


@dataclass
class ListItem(Node):
    type: ClassVar[str] = "listItem"

    children: List[Node] = field(default_factory=list)

    def render(self) -> str:
        return f"<li>{_render_all(self.children)}</li>"

    def serialize(self) -> Dict[str, Any]:
        return {"type": self.type, "content": _serialize_all(self.children)}

    def text_length(self) -> int:
        return _length_of(self.children)

    def has_content(self) -> bool:
        return any(child.has_content() for child in self.children)


@dataclass
class BulletList(Node):
    type: ClassVar[str] = "bulletList"

    items: List[ListItem] = field(default_factory=list)

    def render(self) -> str:
        return f"<ul>{_render_all(self.items)}</ul>"

    def serialize(self) -> Dict[str, Any]:
        return {"type": self.type, "content": _serialize_all(self.items)}

    def text_length(self) -> int:
        return _length_of(self.items)

    def has_content(self) -> bool:
        return any(item.has_content() for item in self.items)


@dataclass
class OrderedList(BulletList):
    type: ClassVar[str] = "orderedList"

    start: int = 1

    def render(self) -> str:
        start = f' start="{self.start}"' if self.start != 1 else ""
        return f"<ol{start}>{_render_all(self.items)}</ol>"

    def serialize(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "attrs": {"start": self.start},
            "content": _serialize_all(self.items),
        }


@dataclass
class CodeBlock(Node):
    type: ClassVar[str] = "codeBlock"

    code: str = ""
    language: str = "plaintext"

    def __post_init__(self):
        self.language = languages.resolve(self.language)

    def render(self) -> str:
        return (
            f'<pre><code class="{languages.css_class(self.language)}">'
            f"{escape(self.code, quote=False)}</code></pre>"
        )

    def serialize(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "attrs": {"language": self.language}}
        if self.code:
            data["content"] = [{"type": "text", "text": self.code}]
        return data

    def text_length(self) -> int:
        return len(self.code)

    def has_content(self) -> bool:
        return bool(self.code.strip())


@dataclass
class HorizontalRule(Node):
    type: ClassVar[str] = "horizontalRule"

    def render(self) -> str:
        return "<hr>"

    def serialize(self) -> Dict[str, Any]:
        return {"type": self.type}

    def text_length(self) -> int:
        return 1


@dataclass
class Document(Node):
    """Root node: an ordered list of blocks."""

    type: ClassVar[str] = "doc"

    children: List[Node] = field(default_factory=list)

    def render(self) -> str:
        return _render_all(self.children)

    def serialize(self) -> Dict[str, Any]:
        return {"type": self.type, "content": _serialize_all(self.children)}

    def text_length(self) -> int:
        return _length_of(self.children)

    def has_content(self) -> bool:
        return any(child.has_content() for child in self.children)

    def walk(self):
        """Depth-first iteration over every node below the root."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            nested = getattr(node, "children", None) or getattr(node, "items", None) or []
            stack.extend(reversed(nested))
