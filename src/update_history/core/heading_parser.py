"""
Heading parser for update history navigation links.

Turns a heading such as
    "January 17, 2022—KB5010793 (OS Builds 19042.1469, 19043.1469, and 19044.1469) Out-of-band"
into its date text, KB identifier, raw build list and resolved patch type.
"""

import re
from typing import NamedTuple, Optional

from ..logging.workflow_logger import get_logger

logger = get_logger()

PATCH_TUESDAY = "Patch Tuesday"
HOTPATCH = "Hotpatch"
BASELINE = "Baseline"
OUT_OF_BAND = "Out-of-band"
PREVIEW = "Preview"

LEADING_TYPES = (HOTPATCH, BASELINE)
TRAILING_TYPES = (OUT_OF_BAND, PREVIEW)

# <date>—[Hotpatch|Baseline] [KBnnn] (<text> <builds> <text>) [Out-of-band|Preview]
# The build list starts at the first dotted version inside the parentheses.
HEADING_PATTERN = re.compile(
    r"^\s*(?P<date>[^—]+?)\s*—\s*"
    r"(?:(?P<leading>" + "|".join(LEADING_TYPES) + r")\s+)?"
    r"(?:(?P<kb>KB\d+)\s*)?"
    r"\([^)]*?(?P<builds>\d+(?:\.\d+)+[^)]*)\)"
    r"(?:\s*(?P<trailing>" + "|".join(re.escape(t) for t in TRAILING_TYPES) + r"))?"
)


class ParsedHeading(NamedTuple):
    """Fields captured from one update heading"""
    date_text: str
    kb: Optional[str]
    builds_text: str
    patch_type: str
    leading_type: Optional[str] = None
    trailing_type: Optional[str] = None


def resolve_patch_type(leading: Optional[str], trailing: Optional[str]) -> str:
    """Trailing qualifier wins over a leading one; neither means Patch Tuesday."""
    if trailing:
        return trailing
    if leading:
        return leading
    return PATCH_TUESDAY


def parse_heading(text: str) -> Optional[ParsedHeading]:
    """
    Apply the heading pattern to a decoded heading string.

    Returns None for anything that is not an update heading (navigation
    links, section titles). Never raises.
    """
    if not text:
        return None

    match = HEADING_PATTERN.match(text)
    if not match:
        logger.debug(f"Heading skipped (no update pattern): {text!r}", group="PARSE")
        return None

    leading = match.group('leading')
    trailing = match.group('trailing')
    return ParsedHeading(
        date_text=match.group('date').strip(),
        kb=match.group('kb'),
        builds_text=match.group('builds').strip(),
        patch_type=resolve_patch_type(leading, trailing),
        leading_type=leading,
        trailing_type=trailing,
    )
