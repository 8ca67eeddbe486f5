# Import Python dependencies
import os
import json
from time import sleep
from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup
from tqdm import tqdm

# Import the logging system
from ..logging.workflow_logger import get_logger, start_fetch, end_fetch

# Get logger instance
logger = get_logger()

DEFAULT_FETCH_SETTINGS = {
    'sources': [],
    'link_class': 'supLeftNavLink',
    'excluded_marker': 'Mobile',
    'include_excluded_category': False,
    'max_fetch_retries': 3,
    'retry_delay_seconds': 2,
    'backoff_factor': 2,
    'timeout_seconds': 30
}

MIN_FETCH_RETRIES = 1
MAX_FETCH_RETRIES = 10


# Load configuration
def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from config.json; an unreadable file yields {}"""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), '..', 'config.json')
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load config file {config_path}, using defaults: {e}", group="INIT")
        return {}


def get_fetch_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fetch settings with defaults filled in and max_fetch_retries clamped to 1..10.
    """
    settings = dict(DEFAULT_FETCH_SETTINGS)
    if 'fetch' not in config:
        logger.warning("Config file missing 'fetch' section, using defaults", group="INIT")
    settings.update(config.get('fetch', {}))

    try:
        retries = int(settings['max_fetch_retries'])
    except (TypeError, ValueError):
        logger.warning(f"Invalid max_fetch_retries {settings['max_fetch_retries']!r}, using default", group="INIT")
        retries = DEFAULT_FETCH_SETTINGS['max_fetch_retries']
    clamped = min(max(retries, MIN_FETCH_RETRIES), MAX_FETCH_RETRIES)
    if clamped != retries:
        logger.warning(f"max_fetch_retries {retries} outside {MIN_FETCH_RETRIES}..{MAX_FETCH_RETRIES}, using {clamped}", group="INIT")
    settings['max_fetch_retries'] = clamped

    settings['include_excluded_category'] = bool(settings['include_excluded_category'])
    return settings


def get_user_agent(config: Dict[str, Any]) -> str:
    app = config.get('application', {})
    return f"{app.get('toolname', 'Update_History_Tools')}/{app.get('version', 'unknown')}"


def fetch_page(url: str, max_retries: int = 3, retry_delay: float = 2, backoff_factor: float = 2,
               timeout: float = 30, user_agent: str = "Update_History_Tools") -> Optional[str]:
    """
    GET a support page, retrying with exponential backoff.

    Returns the decoded page body, or None once max_retries attempts have failed.
    """
    headers = {
        "Accept": "text/html",
        "User-Agent": user_agent
    }

    logger.api_call("Support Page", {"url": url}, group="FETCH")
    for attempt in range(max_retries):
        try:
            response = requests.get(url, headers=headers, timeout=timeout)
            response.raise_for_status()
            logger.api_response("Support Page", "Success", group="FETCH")
            return response.text
        except requests.exceptions.RequestException as e:
            logger.warning(f"Support page request failed: {url} (Attempt {attempt + 1}/{max_retries}) - {e}", group="FETCH")

            if attempt < max_retries - 1:
                wait_time = retry_delay * (backoff_factor ** attempt)
                logger.warning(f"Waiting {wait_time} seconds before retry...", group="FETCH")
                sleep(wait_time)
            else:
                logger.warning(f"Maximum retry attempts ({max_retries}) reached for {url}, skipping source", group="FETCH")
    return None


def extract_headings(html: str, link_class: str = "supLeftNavLink", excluded_marker: Optional[str] = "Mobile",
                     include_excluded_category: bool = False) -> List[str]:
    """
    Collect the text of navigation links carrying link_class, in page order.

    Headings containing excluded_marker are dropped unless
    include_excluded_category is set.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    headings = []
    skipped = 0
    for link in soup.find_all("a", class_=link_class):
        text = " ".join(link.get_text().split())
        if not text:
            continue
        if excluded_marker and excluded_marker in text and not include_excluded_category:
            skipped += 1
            continue
        headings.append(text)

    if skipped:
        logger.debug(f"Excluded {skipped} headings marked '{excluded_marker}'", group="FETCH")
    return headings


def gather_headings(sources: List[str], settings: Dict[str, Any], user_agent: str = "Update_History_Tools") -> List[str]:
    """
    Fetch every source page and return their headings in source order.

    A source that exhausts its retries contributes nothing.
    """
    start_fetch(f"{len(sources)} sources")

    headings: List[str] = []
    failed = 0
    for url in tqdm(sources, desc="Fetching update history pages", unit="page"):
        html = fetch_page(
            url,
            max_retries=settings['max_fetch_retries'],
            retry_delay=settings['retry_delay_seconds'],
            backoff_factor=settings['backoff_factor'],
            timeout=settings['timeout_seconds'],
            user_agent=user_agent
        )
        if html is None:
            failed += 1
            continue

        page_headings = extract_headings(
            html,
            link_class=settings['link_class'],
            excluded_marker=settings['excluded_marker'],
            include_excluded_category=settings['include_excluded_category']
        )
        logger.debug(f"Found {len(page_headings)} headings on {url}", group="FETCH")
        headings.extend(page_headings)

    end_fetch(f"{len(headings)} headings, {failed} failed sources")
    return headings
