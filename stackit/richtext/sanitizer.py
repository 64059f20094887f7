"""
HTML sanitizer for question descriptions.

The allow-list is exactly what the editor can produce. Anything else is
stripped (tags removed, text kept), except for elements whose *content* is
executable or invisible (script, style, ...), which are dropped entirely
before bleach sees the markup.

URL rules:
    <a href>   http, https, mailto
    <img src>  http, https, data:image/* (base64 uploads; SVG excluded)
"""

import logging

import bleach
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

ALLOWED_TAGS = frozenset({
    "p", "br", "hr",
    "h1", "h2", "h3",
    "strong", "b", "em", "i", "u", "s", "strike", "del", "mark",
    "code", "pre",
    "ul", "ol", "li",
    "a", "img",
})

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "data"})

DROP_WITH_CONTENT = ("script", "style", "iframe", "object", "embed", "noscript", "template", "title")


def _is_data_uri(value: str) -> bool:
    return value.strip().lower().startswith("data:")


def _filter_link_attribute(tag: str, name: str, value: str) -> bool:
    if name == "href":
        return not _is_data_uri(value)
    return name == "title"


def _filter_image_attribute(tag: str, name: str, value: str) -> bool:
    if name == "src":
        if not _is_data_uri(value):
            return True
        lowered = value.strip().lower()
        return lowered.startswith("data:image/") and not lowered.startswith("data:image/svg")
    return name in ("alt", "title")


ALLOWED_ATTRIBUTES = {
    "a": _filter_link_attribute,
    "img": _filter_image_attribute,
    "code": ["class"],
    "ol": ["start"],
}


def _drop_dangerous_elements(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    dropped = 0
    for element in soup.find_all(DROP_WITH_CONTENT):
        element.decompose()
        dropped += 1
    if dropped:
        logger.info("Dropped %d executable/invisible element(s) from description", dropped)
    return str(soup)


def sanitize_html(html: str) -> str:
    """Returns `html` reduced to the editor's allow-list."""
    if not html:
        return ""
    return bleach.clean(
        _drop_dangerous_elements(html),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
