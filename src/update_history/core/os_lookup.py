"""
OS name resolution keyed by major build number.

One lookup type, two ways of building it:
- OSLookupTable.from_static(): compiled-in table of Windows client/server releases
- OSLookupTable.from_eol_feed(): built from endoflife.date cycle lists

Usage:
    from .os_lookup import get_lookup_table

    table = get_lookup_table(config)
    names = table.resolve(19045)   # OSNames(client='Windows 10 22H2', server=None)
"""

import re
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

import orjson
import requests

from ..logging.workflow_logger import get_logger
from .schema_validator import EOLFeedSchemaError, validate_eol_cycles

logger = get_logger()


class OSNames(NamedTuple):
    """Client and server OS names sharing one major build"""
    client: Optional[str] = None
    server: Optional[str] = None


class OSRelease(NamedTuple):
    """One lifecycle cycle from the EOL feed"""
    product: str
    cycle: str
    label: str
    latest: str
    major: int
    release_date: Optional[str] = None
    support: Any = None
    eol: Any = None


# major build -> (client name, server name)
STATIC_OS_TABLE: Dict[int, OSNames] = {
    7601: OSNames("Windows 7 SP1", "Windows Server 2008 R2 SP1"),
    9200: OSNames("Windows 8", "Windows Server 2012"),
    9600: OSNames("Windows 8.1", "Windows Server 2012 R2"),
    10240: OSNames("Windows 10 1507", None),
    10586: OSNames("Windows 10 1511", None),
    14393: OSNames("Windows 10 1607", "Windows Server 2016"),
    15063: OSNames("Windows 10 1703", None),
    16299: OSNames("Windows 10 1709", None),
    17134: OSNames("Windows 10 1803", None),
    17763: OSNames("Windows 10 1809", "Windows Server 2019"),
    18362: OSNames("Windows 10 1903", None),
    18363: OSNames("Windows 10 1909", None),
    19041: OSNames("Windows 10 2004", None),
    19042: OSNames("Windows 10 20H2", None),
    19043: OSNames("Windows 10 21H1", None),
    19044: OSNames("Windows 10 21H2", None),
    19045: OSNames("Windows 10 22H2", None),
    20348: OSNames(None, "Windows Server 2022"),
    22000: OSNames("Windows 11 21H2", None),
    22621: OSNames("Windows 11 22H2", None),
    22631: OSNames("Windows 11 23H2", None),
    25398: OSNames(None, "Windows Server 23H2"),
    26100: OSNames("Windows 11 24H2", "Windows Server 2025"),
    26200: OSNames("Windows 11 25H2", None),
}

CLIENT = "client"
SERVER = "server"

# Build numbers of NT 6.1 onwards are at least four digits
_BUILD_COMPONENT = re.compile(r"^\d{4,}$")


def major_from_latest(latest: str) -> Optional[int]:
    """
    Extract the major build from a feed 'latest' value.

    '10.0.19045' -> 19045, '10.0.19045.5011' -> 19045, '26100.2314' -> 26100
    """
    if not latest:
        return None
    parts = str(latest).strip().split('.')
    if len(parts) >= 3 and parts[2].isdigit():
        return int(parts[2])
    for part in parts:
        if _BUILD_COMPONENT.match(part):
            return int(part)
    return None


def _release_name(product: str, cycle: Dict[str, Any]) -> str:
    prefix = "Windows Server" if product == SERVER else "Windows"
    label = str(cycle.get('releaseLabel') or cycle.get('cycle'))
    # Client labels carry edition suffixes, e.g. "10 1809 (E) (LTS)"
    label = re.sub(r"(?:\s*\([^)]*\))+\s*$", "", label).strip()
    if label.lower().startswith(prefix.lower()):
        return label
    return f"{prefix} {label}"


class OSLookupTable:
    """Read-only mapping from major build number to OS names"""

    def __init__(self, entries: Dict[int, OSNames], source: str = "static",
                 releases: Optional[List[OSRelease]] = None):
        self._entries = dict(entries)
        self.source = source
        self.releases = list(releases or [])

    def resolve(self, major: int) -> Optional[OSNames]:
        """Return the OS names for a major build, or None if unknown"""
        return self._entries.get(major)

    def __contains__(self, major: int) -> bool:
        return major in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_static(cls) -> "OSLookupTable":
        return cls(STATIC_OS_TABLE, source="static")

    @classmethod
    def from_eol_feed(cls, client_cycles: Iterable[Dict[str, Any]],
                      server_cycles: Iterable[Dict[str, Any]] = ()) -> "OSLookupTable":
        """
        Build a table from endoflife.date cycle lists.

        Cycles whose 'latest' has no recognizable build are skipped. When
        several cycles share a major build (client editions), the first
        name listed wins for that product line.
        """
        clients: Dict[int, str] = {}
        servers: Dict[int, str] = {}
        releases: List[OSRelease] = []

        for product, cycles, names in ((CLIENT, client_cycles, clients),
                                       (SERVER, server_cycles, servers)):
            for cycle in cycles:
                major = major_from_latest(cycle.get('latest'))
                if major is None:
                    logger.debug(f"EOL cycle without build number skipped: {cycle.get('cycle')}", group="RESOLVE")
                    continue
                name = _release_name(product, cycle)
                names.setdefault(major, name)
                releases.append(OSRelease(
                    product=product,
                    cycle=str(cycle.get('cycle')),
                    label=name,
                    latest=str(cycle.get('latest')),
                    major=major,
                    release_date=cycle.get('releaseDate'),
                    support=cycle.get('support'),
                    eol=cycle.get('eol'),
                ))

        entries = {
            major: OSNames(clients.get(major), servers.get(major))
            for major in sorted(set(clients) | set(servers))
        }
        return cls(entries, source="eol_feed", releases=releases)


def fetch_eol_cycles(url: str, timeout: int = 30, user_agent: str = "Update_History_Tools") -> List[Dict[str, Any]]:
    """
    Query an endoflife.date product endpoint and return its validated cycle list.

    Raises:
        requests.exceptions.RequestException: transport failure
        EOLFeedSchemaError: payload is not a list of cycles
    """
    logger.api_call("EOL Feed", {"url": url}, group="RESOLVE")
    response = requests.get(url, headers={"Accept": "application/json", "User-Agent": user_agent}, timeout=timeout)
    response.raise_for_status()

    try:
        data = orjson.loads(response.content)
    except orjson.JSONDecodeError as e:
        raise EOLFeedSchemaError(f"EOL feed returned invalid JSON - {url}: {e}")

    validate_eol_cycles(data, context=url)
    logger.api_response("EOL Feed", "Success", count=len(data), group="RESOLVE")
    return data


def get_lookup_table(config: Dict[str, Any]) -> OSLookupTable:
    """
    Build the lookup table selected by config['os_resolution']['mode'].

    Feed failures fall back to the static table.
    """
    settings = config.get('os_resolution', {})
    mode = settings.get('mode', 'static')

    if mode == 'static':
        table = OSLookupTable.from_static()
        logger.info(f"Using static OS lookup table ({len(table)} major builds)", group="RESOLVE")
        return table

    if mode != 'eol_feed':
        logger.warning(f"Unknown os_resolution mode '{mode}', using static table", group="RESOLVE")
        return OSLookupTable.from_static()

    endpoints = settings.get('endpoints', {})
    timeout = settings.get('timeout_seconds', 30)
    app = config.get('application', {})
    user_agent = f"{app.get('toolname', 'Update_History_Tools')}/{app.get('version', 'unknown')}"

    try:
        client_cycles = fetch_eol_cycles(endpoints['client'], timeout, user_agent)
        server_cycles = fetch_eol_cycles(endpoints['server'], timeout, user_agent) if endpoints.get('server') else []
    except (requests.exceptions.RequestException, EOLFeedSchemaError, KeyError) as e:
        logger.warning(f"EOL feed unavailable, falling back to static OS table: {e}", group="RESOLVE")
        return OSLookupTable.from_static()

    table = OSLookupTable.from_eol_feed(client_cycles, server_cycles)
    logger.info(f"Built OS lookup table from EOL feed: {len(table)} major builds, {len(table.releases)} cycles", group="RESOLVE")
    return table
