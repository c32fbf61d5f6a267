"""URL and response classification heuristics.

Pure functions that decide whether a URL is worth fetching at all, whether a
response is an anti-bot page rather than real content, and whether a page is
a client-rendered shell that only a browser can fill in. False negatives are
acceptable; a false positive only costs an unnecessary browser fetch.
"""

from kwscan.content import document_text, parse_document, strip_non_content

# Suffixes and path fragments of downloadable, non-HTML assets
SKIP_SUFFIXES = (".pdf", ".zip", ".exe", ".dmg")
SKIP_FRAGMENTS = (".pdf?", "/pdf/", "/download", "file-pdf")

BLOCKED_STATUS_CODES = frozenset({403, 429, 503})
BLOCKED_MARKERS = (
    "captcha",
    "cloudflare",
    "access denied",
    "please verify",
    "rate limit",
)

# Visible text shorter than this, next to an app mount point, means a script-rendered shell
MIN_RENDERED_TEXT_LENGTH = 500
MOUNT_POINT_SELECTOR = "#root, #__next, #app"


def should_skip(url: str) -> bool:
    """Return True if the URL points at a PDF, archive or installer download.

    Examples:
        >>> should_skip("https://example.com/report.PDF")
        True
        >>> should_skip("https://example.com/files/download?id=3")
        True
        >>> should_skip("https://example.com/pricing")
        False
    """
    lowered = url.lower()
    if lowered.endswith(SKIP_SUFFIXES):
        return True
    return any(fragment in lowered for fragment in SKIP_FRAGMENTS)


def is_blocked(status_code: int, body: str) -> bool:
    """Return True if the response looks like an anti-automation or rate-limit page."""
    if status_code in BLOCKED_STATUS_CODES:
        return True
    lowered = body.lower()
    return any(marker in lowered for marker in BLOCKED_MARKERS)


def needs_rendering(body: str) -> bool:
    """Return True if the page is likely populated by client-side script.

    Requires both a known app mount point (``#root``, ``#__next``, ``#app``)
    and less than MIN_RENDERED_TEXT_LENGTH characters of visible text.
    """
    doc = parse_document(body)
    if doc is None:
        return False

    if not doc.cssselect(MOUNT_POINT_SELECTOR):
        return False

    strip_non_content(doc)
    return len(document_text(doc)) < MIN_RENDERED_TEXT_LENGTH
