"""
Description pipeline: raw editor HTML → stored HTML.

    raw HTML ──size check──▶ sanitize (bleach) ──▶ parse (bs4) ──▶ Document
                                                                      │
           stored HTML ◀── render() ◀── empty / length checks ◀───────┘

The editor enforces a character limit in the browser only; the same limit is
applied here so a client that skips the editor cannot bypass it.
"""

import logging
from typing import Optional

from stackit.config import settings
from stackit.exceptions import ValidationError
from stackit.richtext.document import Document
from stackit.richtext.parser import parse_html
from stackit.richtext.sanitizer import sanitize_html

logger = logging.getLogger(__name__)


def build_document(html: str) -> Document:
    """Sanitizes `html` and parses it into a Document (no limit checks)."""
    return parse_html(sanitize_html(html))


def prepare_description(
    html: str,
    max_chars: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> str:
    """
    Validates and canonicalizes a question description.

    Returns:
        Sanitized, canonical HTML ready for storage.

    Raises:
        ValidationError: oversized payload, nothing visible after
        sanitization, or more text characters than allowed.
    """
    max_chars = max_chars or settings.description_max_chars
    max_bytes = max_bytes or settings.description_max_bytes

    size = len(html.encode("utf-8"))
    if size > max_bytes:
        raise ValidationError(
            message=f"Description is too large ({size} bytes, max {max_bytes})",
            field="description",
            context={"size": size, "max_bytes": max_bytes},
        )

    document = build_document(html)

    if not document.has_content():
        raise ValidationError(
            message="Description must not be empty",
            field="description",
        )

    length = document.text_length()
    if length > max_chars:
        raise ValidationError(
            message=f"Description exceeds {max_chars} characters ({length})",
            field="description",
            context={"length": length, "max_chars": max_chars},
        )

    rendered = document.render()
    if rendered != html:
        logger.debug("Description normalized: %d → %d bytes", size, len(rendered))
    return rendered
