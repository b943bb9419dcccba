"""Light-weight markdown clean-up for README text returned to clients.

Only the constructs that read badly outside a renderer are touched: badge
images and repository-relative links. Everything else is passed through.
"""

from __future__ import annotations

import re

from composer_readme.output import warning

NO_DESCRIPTION = "No description available"

_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_RELATIVE_LINK_RE = re.compile(r"\[([^\]]+)\]\((?!https?://)([^)]+)\)")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def _image_alt(match: re.Match[str]) -> str:
    alt = match.group(1)
    return alt if len(alt) > 3 else ""


def clean_markdown(content: str) -> str:
    """Strip badge images and relative links from *content*.

    * ``![alt](url)`` becomes ``alt`` when the alt text is longer than three
      characters and disappears otherwise.
    * ``[text](target)`` becomes ``text`` unless *target* is an absolute
      ``http(s)://`` URL.
    * Runs of three or more newlines collapse to one blank line.

    Returns the input unchanged if cleaning fails.
    """
    try:
        cleaned = _IMAGE_RE.sub(_image_alt, content)
        cleaned = _RELATIVE_LINK_RE.sub(r"\1", cleaned)
        cleaned = _BLANK_RUN_RE.sub("\n\n", cleaned)
        return cleaned.strip()
    except Exception as exc:
        warning(f"Failed to clean markdown content: {exc}")
        return content


def extract_description(content: str) -> str:
    """Return the first substantial paragraph of a README.

    Headings, badge lines and lines of 20 characters or fewer are skipped.
    Once a line has been taken, following long lines of the same paragraph
    are appended while the result stays under 300 characters; a blank line
    or heading ends the paragraph.
    """
    description = ""
    for line in content.split("\n"):
        trimmed = line.strip()

        if not trimmed or trimmed.startswith("#"):
            if description:
                break
            continue

        if trimmed.startswith("![") or trimmed.startswith("[!["):
            continue

        if len(trimmed) > 20:
            if not description:
                description = trimmed
            elif len(description) + len(trimmed) < 300:
                description += " " + trimmed
            else:
                break

    return description or NO_DESCRIPTION
