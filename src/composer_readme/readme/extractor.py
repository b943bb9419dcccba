"""Heuristic extraction of usage examples from README markdown.

:func:`parse_usage_examples` turns free-form README text into a short,
deduplicated list of :class:`~composer_readme.models.UsageExample` objects.
It is a pipeline of small pure functions, each usable on its own:

1. **Sections** -- :func:`extract_usage_sections` collects the lines under
   headings whose text is usage vocabulary (``## Usage``, ``### Quick
   start``, ...) or under bare ``Usage:`` / ``Examples:`` /
   ``Installation:`` labels. A section runs until a heading of the same or a
   shallower level.
2. **Code blocks** -- :func:`extract_code_blocks` pulls fenced blocks out of
   each section; the language tag defaults to ``text``.
3. **Titles** -- :func:`infer_title` names a block from its language and
   first line (``composer require`` in a shell block is "Installation").
4. **Descriptions** -- :func:`infer_description` takes the prose line right
   above the opening fence, if it reads like prose.
5. **Languages** -- :func:`normalize_language` maps aliases (``sh``,
   ``yml``, ``js`` ...) to canonical names.
6. **Deduplication** -- :func:`deduplicate_examples` keeps the first block
   for each whitespace-normalised code text.
7. **Limit** -- at most :data:`MAX_USAGE_EXAMPLES` examples are returned.

Usage examples are a best-effort enhancement of a README response, so
:func:`parse_usage_examples` never raises: any internal failure is reported
as a warning and yields an empty list.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from composer_readme.models import UsageExample
from composer_readme.output import debug, warning

MAX_USAGE_EXAMPLES = 10
MIN_DESCRIPTION_LENGTH = 20
MAX_DESCRIPTION_LENGTH = 300

USAGE_VOCABULARY = (
    "usage",
    "use",
    "using",
    "how to use",
    "getting started",
    "quick start",
    "example",
    "examples",
    "basic usage",
    "installation",
    "quickstart",
)

LANGUAGE_ALIASES = {
    "php": "php",
    "javascript": "javascript",
    "js": "javascript",
    "typescript": "typescript",
    "ts": "typescript",
    "bash": "bash",
    "shell": "bash",
    "sh": "bash",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "xml": "xml",
    "markdown": "markdown",
    "md": "markdown",
    "html": "html",
    "htm": "html",
}

# A bare label has no hash marks; it behaves like the deepest heading level,
# so any real heading closes the section it opens.
BARE_LABEL_LEVEL = 6

_HEADING_RE = re.compile(r"^(#{1,6})\s")
_USAGE_HEADING_RE = re.compile(
    r"^#{1,6}\s*(?:" + "|".join(re.escape(v) for v in USAGE_VOCABULARY) + r")\s*$",
    re.IGNORECASE,
)
_BARE_LABEL_RE = re.compile(r"^(?:usage|examples?|installation):?\s*$", re.IGNORECASE)
_FENCE_RE = re.compile(r"^\s*```")
_CODE_BLOCK_RE = re.compile(r"```[ \t]*([^\s`]*)[^\n]*\n(.*?)```", re.DOTALL)
_BULLET_RE = re.compile(r"^[*-]\s*")
_WHITESPACE_RE = re.compile(r"\s+")

_CODE_INDICATORS = (
    re.compile(r"^\s*[{}\[\]();,]"),  # starts with a code character
    re.compile(r"[{}\[\]();,]\s*$"),  # ends with a code character
    re.compile(r"^\s*(?:const|let|var|function|class|import|export|require)\s+"),
    re.compile(r"^\s*<\?php"),
    re.compile(r"^\s*\$"),  # shell prompt or PHP variable
    re.compile(r"^\s*//"),
    re.compile(r"^\s*#"),
    re.compile(r"^\s*/\*"),
)


@dataclass
class Section:
    """Lines captured under one usage heading, heading line included."""

    heading: str
    level: int
    lines: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class CodeBlock:
    """A fenced block found in a section; ``start`` is the fence's offset in the section text."""

    language: str
    code: str
    start: int


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def parse_usage_examples(readme: Optional[str], include_examples: bool = True) -> list[UsageExample]:
    """Extract up to :data:`MAX_USAGE_EXAMPLES` usage examples from *readme*.

    Args:
        readme: Raw README markdown.
        include_examples: When ``False`` the text is not scanned at all.

    Returns:
        Examples in document order, deduplicated by code. Empty when
        examples are disabled, the text is empty, nothing usage-like was
        found, or extraction failed.
    """
    if not include_examples or not readme:
        return []

    try:
        examples: list[UsageExample] = []
        for section in extract_usage_sections(readme):
            examples.extend(examples_from_section(section))

        limited = deduplicate_examples(examples)[:MAX_USAGE_EXAMPLES]
        debug(f"Extracted {len(limited)} usage examples from README")
        return limited
    except Exception as exc:
        warning(f"Failed to parse usage examples from README: {exc}")
        return []


def examples_from_section(section: Section) -> list[UsageExample]:
    """Turn every non-empty fenced block of *section* into a :class:`UsageExample`."""
    text = section.text
    examples = []
    for block in extract_code_blocks(text):
        examples.append(
            UsageExample(
                title=infer_title(block.code, block.language),
                description=infer_description(text[: block.start]),
                code=block.code,
                language=normalize_language(block.language),
            )
        )
    return examples


# ---------------------------------------------------------------------------
# Section detection
# ---------------------------------------------------------------------------


def heading_level(line: str) -> Optional[int]:
    """Return the level (1-6) of a markdown ATX heading, or ``None``."""
    match = _HEADING_RE.match(line)
    return len(match.group(1)) if match else None


def is_usage_heading(line: str) -> bool:
    """Whether *line* is a heading whose whole text is usage vocabulary."""
    return _USAGE_HEADING_RE.match(line) is not None


def is_bare_usage_label(line: str) -> bool:
    """Whether *line* is a hash-less ``Usage:`` / ``Examples:`` / ``Installation:`` label."""
    return _BARE_LABEL_RE.match(line) is not None


def extract_usage_sections(content: str) -> list[Section]:
    """Split *content* into the usage sections it contains.

    Lines outside usage sections are discarded. Lines inside fenced code
    blocks are never treated as headings, so a ``# comment`` in a shell
    snippet does not end the section around it.
    """
    sections: list[Section] = []
    current: Optional[Section] = None
    in_fence = False

    for line in content.replace("\r\n", "\n").split("\n"):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            if current is not None:
                current.lines.append(line)
            continue

        if in_fence:
            if current is not None:
                current.lines.append(line)
            continue

        level = heading_level(line)
        if level is not None:
            if is_usage_heading(line):
                if current is not None:
                    sections.append(current)
                current = Section(heading=line.strip(), level=level, lines=[line])
            elif current is not None and level <= current.level:
                sections.append(current)
                current = None
            elif current is not None:
                current.lines.append(line)
        elif is_bare_usage_label(line) and current is None:
            current = Section(heading=line.strip(), level=BARE_LABEL_LEVEL, lines=[line])
        elif current is not None:
            current.lines.append(line)

    if current is not None:
        sections.append(current)

    return sections


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------


def extract_code_blocks(section_text: str) -> list[CodeBlock]:
    """Find fenced code blocks in *section_text*; empty blocks are skipped."""
    blocks = []
    for match in _CODE_BLOCK_RE.finditer(section_text):
        code = match.group(2).strip()
        if not code:
            continue
        blocks.append(CodeBlock(language=match.group(1) or "text", code=code, start=match.start()))
    return blocks


def infer_title(code: str, language: str) -> str:
    """Name a code block from its language tag and first line."""
    lang = language.lower()
    first_line = code.split("\n", 1)[0].strip()

    if lang in ("bash", "shell", "sh"):
        if "composer require" in first_line or "composer install" in first_line:
            return "Installation"
        return "Command Line Usage"

    if lang == "php":
        if "require" in first_line or "include" in first_line or "use " in first_line:
            return "Basic Usage"
        if "$" in code and "=" in code:
            return "Basic Example"
        return "PHP Example"

    if lang in ("javascript", "js"):
        if "require(" in first_line or "import " in first_line:
            return "Basic Usage"
        return "JavaScript Example"

    if lang == "json":
        if '"require"' in code or '"require-dev"' in code:
            return "Composer Configuration"
        return "Configuration"

    if lang in ("yaml", "yml"):
        return "Configuration"

    if lang == "xml":
        return "XML Configuration"

    return "Code Example"


def looks_like_code(text: str) -> bool:
    return any(pattern.search(text) for pattern in _CODE_INDICATORS)


def infer_description(preceding_text: str) -> Optional[str]:
    """Pick a description from the text that precedes a code fence.

    Walks backward over blank and heading lines to the first other line.
    That line is the description if it is prose of reasonable length
    (``MIN_DESCRIPTION_LENGTH <= len < MAX_DESCRIPTION_LENGTH``); otherwise
    there is none. A leading ``-`` / ``*`` bullet is removed.
    """
    for line in reversed(preceding_text.split("\n")):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        if (
            MIN_DESCRIPTION_LENGTH <= len(trimmed) < MAX_DESCRIPTION_LENGTH
            and not looks_like_code(trimmed)
        ):
            return _BULLET_RE.sub("", trimmed, count=1)
        return None
    return None


def normalize_language(language: str) -> str:
    """Map a fence language tag to its canonical name; unknown tags are lower-cased."""
    lowered = language.lower()
    return LANGUAGE_ALIASES.get(lowered, lowered)


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def normalize_code(code: str) -> str:
    return _WHITESPACE_RE.sub(" ", code).strip()


def deduplicate_examples(examples: list[UsageExample]) -> list[UsageExample]:
    """Drop examples whose normalised code was already seen; order is kept."""
    seen: set[str] = set()
    unique = []
    for example in examples:
        key = normalize_code(example.code)
        if key in seen:
            continue
        seen.add(key)
        unique.append(example)
    return unique
