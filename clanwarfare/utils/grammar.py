from __future__ import annotations
import html
import re

_LINE_BREAKS = re.compile(r"\r\n?")
_BLANK_RUNS = re.compile(r"\n{3,}")
_SPACE_RUNS = re.compile(r"[ \t]+")


def decode(text: str | None) -> str:
    """Decode HTML entities; upstream double-encodes some names (&amp;amp;)."""
    if not text:
        return ""
    out = str(text)
    for _ in range(3):
        decoded = html.unescape(out)
        if decoded == out:
            break
        out = decoded
    return out


def description(text: str | None) -> str | None:
    """Clean a user-written description for display as HTML.

    Entities are decoded, then the text is re-escaped so stray markup is shown
    literally; line breaks become <br /> tags.
    """
    if not text:
        return None
    out = _LINE_BREAKS.sub("\n", decode(text))
    out = "\n".join(_SPACE_RUNS.sub(" ", line).strip() for line in out.split("\n"))
    out = _BLANK_RUNS.sub("\n\n", out).strip()
    if not out:
        return None
    return html.escape(out, quote=False).replace("\n", "<br />")


def possessive(name: str | None) -> str:
    if not name:
        return ""
    return f"{name}'" if name.endswith(("s", "S")) else f"{name}'s"
