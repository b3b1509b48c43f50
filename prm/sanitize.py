# prm/sanitize.py

import html
import re

# Unicode direction overrides and isolates
_DIRECTION_CHARS = re.compile("[\u202a-\u202e\u2066-\u2069]")

# markdown control characters, backslash-escaped before rendering
_MARKDOWN_CHARS = re.compile(r"[\\`*_\[\]#]")


def clean_text(text) -> str:
    """
    Normalizes free-text form input before it is stored.
    Strips direction overrides and surrounding whitespace.
    """
    if not text:
        return ""
    cleaned = str(text)
    cleaned = _DIRECTION_CHARS.sub("", cleaned)
    return cleaned.strip()


def clean_optional(text):
    """Like clean_text, but blank input becomes None."""
    cleaned = clean_text(text)
    return cleaned or None


def escape_html(text) -> str:
    """Escape user text for HTML contexts such as Plotly hover labels."""
    if not text:
        return ""
    return html.escape(clean_text(text))


def escape_markdown(text) -> str:
    """Escape user text before it is interpolated into st.markdown or st.caption."""
    if not text:
        return ""
    return html.escape(_MARKDOWN_CHARS.sub(r"\\\g<0>", clean_text(text)))
