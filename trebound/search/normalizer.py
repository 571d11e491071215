"""Text normalization for search."""

import re
from typing import List


# Entities the CMS actually emits in rich-text fields
HTML_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")

# Query words this short are noise ("a", "in", "of")
MIN_WORD_LENGTH = 3


def extract_text_from_html(html: str) -> str:
    """
    Strip markup from a rich-text field.

    - Remove tags
    - Decode the common entities
    - Collapse whitespace and trim
    """
    if not html:
        return ""

    text = _TAG_RE.sub("", str(html))
    for entity, replacement in HTML_ENTITIES.items():
        text = text.replace(entity, replacement)
    return _SPACE_RE.sub(" ", text).strip()


def query_words(query: str) -> List[str]:
    """Lower-cased query tokens long enough to carry meaning."""
    return [w for w in query.lower().split() if len(w) >= MIN_WORD_LENGTH]


def join_fields(*fields: str) -> str:
    """
    Join non-empty fields with " - ".

    The first field is the record's name; ranking treats the text before
    the first " - " as the title segment.
    """
    return " - ".join(f for f in fields if f)
