"""Visible text extraction.

Both fetch tiers match the keyword against what a reader would see: the
document body with script, style, noscript and iframe subtrees removed,
whitespace collapsed and lower-cased.
"""

import logging
import re
from typing import cast

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

NON_CONTENT_TAGS = ("script", "style", "noscript", "iframe")
NON_CONTENT_SELECTOR = ", ".join(NON_CONTENT_TAGS)

_WHITESPACE_REGEX = re.compile(r"\s+")


def parse_document(markup: str) -> HtmlElement | None:
    """Parse markup into an lxml document.

    Returns None for empty input or markup lxml refuses to parse.
    """
    if not markup or not markup.strip():
        return None

    try:
        return cast("HtmlElement", lxml_html.document_fromstring(markup))
    except ValueError:
        # lxml rejects str input that carries an XML encoding declaration
        try:
            return cast("HtmlElement", lxml_html.document_fromstring(markup.encode("utf-8")))
        except (etree.ParserError, ValueError) as e:
            logger.debug(f"Unparseable markup: {e}")
            return None
    except etree.ParserError as e:
        logger.debug(f"Unparseable markup: {e}")
        return None


def strip_non_content(doc: HtmlElement) -> None:
    """Remove non-content subtrees in place, keeping the text that follows them."""
    for element in doc.cssselect(NON_CONTENT_SELECTOR):
        element.drop_tree()


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and lower-case."""
    return _WHITESPACE_REGEX.sub(" ", text).strip().lower()


def document_text(doc: HtmlElement) -> str:
    """Normalized text of the document body (or the whole tree if it has none)."""
    body = doc.find("body")
    root = body if body is not None else doc
    return normalize_text(root.text_content() or "")


def visible_text(markup: str) -> str:
    """Visible, normalized text of an HTML string.

    Examples:
        >>> visible_text("<p>Hello <script>var x;</script>World</p>")
        'hello world'
    """
    doc = parse_document(markup)
    if doc is None:
        return ""
    strip_non_content(doc)
    return document_text(doc)


def contains_keyword(text: str, keyword: str) -> bool:
    """Case-insensitive containment test of ``keyword`` in normalized ``text``."""
    needle = normalize_text(keyword)
    if not needle:
        return False
    return needle in normalize_text(text)
