"""
StackIt Backend — Rich Text (server half of the editor)
=========================================================

What:  Document model, sanitizer, parser and code-block language registry
       for question descriptions.
Who:   The question routes call `prepare_description()` on every create/update.
"""

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
from stackit.richtext.languages import LanguageRegistry, languages
from stackit.richtext.parser import parse_html
from stackit.richtext.pipeline import build_document, prepare_description
from stackit.richtext.sanitizer import sanitize_html

__all__ = [
    "BulletList",
    "CodeBlock",
    "Document",
    "HardBreak",
    "Heading",
    "HorizontalRule",
    "Image",
    "LanguageRegistry",
    "Link",
    "ListItem",
    "Node",
    "OrderedList",
    "Paragraph",
    "Text",
    "build_document",
    "languages",
    "parse_html",
    "prepare_description",
    "sanitize_html",
]
