"""
Record expansion and OS resolution.

One parsed heading fans out into one UpdateRecord per build number. Bad
tokens, overflowing versions and unparseable dates only drop (or blank)
the affected piece; nothing here raises past expand_heading().
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from packaging.version import InvalidVersion, Version

from ..logging.workflow_logger import get_logger
from .heading_parser import ParsedHeading, parse_heading
from .os_lookup import OSLookupTable

logger = get_logger()

BUILD_TOKEN = re.compile(r"^\d{1,10}(?:\.\d{1,10}){1,3}$")
BUILD_CANDIDATE = re.compile(r"\d+(?:\.\d+)+")
JOINERS = re.compile(r"\s+(?:and|or)\s+")
NON_BUILD_CHARS = re.compile(r"[^\d.]")
MAX_COMPONENT = 2**31 - 1
# Fields missing from the heading date (e.g. the day) come from here
DATE_DEFAULT = datetime(1900, 1, 1)


class BuildParseError(ValueError):
    """Raised when a token is not a usable OS build number"""
    pass


@dataclass(frozen=True)
class OSBuild:
    """Dotted OS build (major.minor[.build[.revision]]) with numeric ordering"""
    text: str
    version: Version

    @property
    def parts(self):
        return self.version.release

    @property
    def major(self) -> int:
        return self.parts[0]

    @property
    def minor(self) -> int:
        return self.parts[1]

    @property
    def build(self) -> Optional[int]:
        return self.parts[2] if len(self.parts) > 2 else None

    @property
    def revision(self) -> Optional[int]:
        return self.parts[3] if len(self.parts) > 3 else None

    def __str__(self) -> str:
        return self.text

    def __lt__(self, other: "OSBuild") -> bool:
        return (self.version, self.text) < (other.version, other.text)


@dataclass(frozen=True)
class UpdateRecord:
    kb: Optional[str]
    build: OSBuild
    date: Optional[date]
    client_os: Optional[str]
    server_os: Optional[str]
    patch_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kb': self.kb,
            'build': str(self.build),
            'date': self.date.isoformat() if self.date else None,
            'clientOS': self.client_os,
            'serverOS': self.server_os,
            'patchType': self.patch_type,
        }


def split_builds(builds_text: str) -> List[str]:
    """
    Split a raw build list into cleaned candidate tokens.

    '19042.1469, 19043.1469, and 19044.1469' -> ['19042.1469', '19043.1469', '19044.1469']

    Each piece keeps only its first dotted version, so words and numbers
    around it ('17763.2452 for Windows Server 2019') are not glued on.
    """
    normalized = JOINERS.sub(", ", builds_text or "")
    tokens = []
    for raw in normalized.split(","):
        candidate = BUILD_CANDIDATE.search(raw)
        token = candidate.group(0) if candidate else NON_BUILD_CHARS.sub("", raw)
        if token:
            tokens.append(token)
    return tokens


def parse_build(token: str) -> OSBuild:
    """
    Parse a cleaned build token into an OSBuild.

    Raises:
        BuildParseError: token shape is wrong or a component overflows 32 bits
    """
    if not BUILD_TOKEN.match(token):
        raise BuildParseError(f"Not a build number: {token!r}")
    if any(int(part) > MAX_COMPONENT for part in token.split('.')):
        raise BuildParseError(f"Build component out of range: {token!r}")
    try:
        version = Version(token)
    except InvalidVersion as e:
        raise BuildParseError(str(e))
    return OSBuild(text=str(version), version=version)


def parse_release_date(date_text: str) -> Optional[date]:
    """Parse heading date text ('January 11, 2022'); None when unparseable"""
    if not date_text:
        return None
    try:
        return date_parser.parse(date_text, default=DATE_DEFAULT).date()
    except (ValueError, OverflowError) as e:
        logger.warning(f"Could not parse update date {date_text!r}: {e}", group="PARSE")
        return None


def expand_heading(parsed: ParsedHeading, lookup: OSLookupTable) -> List[UpdateRecord]:
    """Emit one UpdateRecord per valid build in a parsed heading"""
    release_date = parse_release_date(parsed.date_text)
    records = []

    for token in split_builds(parsed.builds_text):
        try:
            build = parse_build(token)
        except BuildParseError as e:
            logger.debug(f"Build token dropped for {parsed.kb or 'no KB'}: {e}", group="PARSE")
            continue

        names = lookup.resolve(build.major)
        if names is None:
            logger.debug(f"No OS name for major build {build.major}", group="RESOLVE")

        records.append(UpdateRecord(
            kb=parsed.kb,
            build=build,
            date=release_date,
            client_os=names.client if names else None,
            server_os=names.server if names else None,
            patch_type=parsed.patch_type,
        ))

    return records


def build_records(text: str, lookup: OSLookupTable) -> List[UpdateRecord]:
    """Parse one heading string and expand it; [] for non-update headings"""
    parsed = parse_heading(text)
    if parsed is None:
        return []
    return expand_heading(parsed, lookup)
