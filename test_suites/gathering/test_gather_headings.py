#!/usr/bin/env python3
"""
Heading Gathering Test Suite

Tests the fetch + extract collaborator:
- Link-class extraction with entity decoding and whitespace cleanup
- Excluded category marker filtering and the include flag
- Retry with exponential backoff and soft failure after max attempts
- A failed source does not stop the other sources
- Fetch settings defaults and max_fetch_retries clamping

This test suite mocks HTTP and sleep and makes no network calls.

Standard Output Format: TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Heading Gathering"
"""
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import requests

# Add project root to path
project_root = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(project_root))

from src.update_history.core.gatherData import (
    extract_headings,
    fetch_page,
    gather_headings,
    get_fetch_settings,
    load_config
)

SAMPLE_PAGE = """
<html><body>
<nav>
  <a class="supLeftNavLink" href="/a">Windows 10 update history</a>
  <a class="supLeftNavLink" href="/b">January 17, 2022&#x2014;KB5010793 (OS Builds 19042.1469, 19043.1469, and 19044.1469) Out-of-band</a>
  <a class="supLeftNavLink other" href="/c">January 11, 2022&mdash;KB5009543
     (OS Builds 19042.1466, 19043.1466, and 19044.1466)</a>
  <a class="supLeftNavLink" href="/d">August 8, 2017&mdash;KB4034674 (OS Build 15063.540) Mobile</a>
  <a class="supNavLink" href="/e">January 11, 2022&mdash;KB5009557 (OS Build 17763.2452)</a>
  <a class="supLeftNavLink" href="/f">   </a>
</nav>
</body></html>
"""

# Test runner decorator
_test_registry = []
def test(description):
    def decorator(func):
        _test_registry.append((description, func))
        return func
    return decorator


def page_response(text="", status=200):
    response = Mock()
    response.status_code = status
    response.text = text
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} Error")
    else:
        response.raise_for_status.return_value = None
    return response


@test("Only links with the navigation class are extracted, in page order")
def test_extract_link_class():
    headings = extract_headings(SAMPLE_PAGE)
    assert headings == [
        "Windows 10 update history",
        "January 17, 2022—KB5010793 (OS Builds 19042.1469, 19043.1469, and 19044.1469) Out-of-band",
        "January 11, 2022—KB5009543 (OS Builds 19042.1466, 19043.1466, and 19044.1466)",
    ], f"Unexpected headings: {headings}"


@test("Excluded category kept when the include flag is set")
def test_extract_include_excluded():
    headings = extract_headings(SAMPLE_PAGE, include_excluded_category=True)
    assert len(headings) == 4
    assert headings[-1].endswith("Mobile")
    assert extract_headings("") == []


@test("Fetch retries with exponential backoff then succeeds")
def test_fetch_retry_then_success():
    responses = [
        requests.exceptions.ConnectionError("reset"),
        page_response(status=503),
        page_response(text="<html>ok</html>"),
    ]
    with patch('src.update_history.core.gatherData.requests.get', side_effect=responses) as mock_get, \
         patch('src.update_history.core.gatherData.sleep') as mock_sleep:
        html = fetch_page("https://example.test/page", max_retries=3, retry_delay=1, backoff_factor=2)
    assert html == "<html>ok</html>"
    assert mock_get.call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]


@test("Fetch returns None after exhausting retries")
def test_fetch_exhausted():
    with patch('src.update_history.core.gatherData.requests.get',
               side_effect=requests.exceptions.Timeout("slow")) as mock_get, \
         patch('src.update_history.core.gatherData.sleep') as mock_sleep:
        html = fetch_page("https://example.test/page", max_retries=2, retry_delay=1)
    assert html is None
    assert mock_get.call_count == 2
    assert mock_sleep.call_count == 1


@test("A failed source contributes nothing while others are gathered")
def test_gather_skips_failed_source():
    settings = get_fetch_settings({"fetch": {"max_fetch_retries": 1}})

    def fake_get(url, headers=None, timeout=None):
        if "broken" in url:
            raise requests.exceptions.ConnectionError("down")
        return page_response(text=SAMPLE_PAGE)

    with patch('src.update_history.core.gatherData.requests.get', side_effect=fake_get), \
         patch('src.update_history.core.gatherData.sleep'):
        headings = gather_headings(["https://broken.test/a", "https://ok.test/b"], settings)
    assert len(headings) == 3


@test("Fetch settings fill defaults and clamp max_fetch_retries")
def test_fetch_settings():
    defaults = get_fetch_settings({})
    assert defaults['max_fetch_retries'] == 3
    assert defaults['include_excluded_category'] is False
    assert defaults['link_class'] == "supLeftNavLink"

    assert get_fetch_settings({"fetch": {"max_fetch_retries": 0}})['max_fetch_retries'] == 1
    assert get_fetch_settings({"fetch": {"max_fetch_retries": 25}})['max_fetch_retries'] == 10
    assert get_fetch_settings({"fetch": {"max_fetch_retries": "many"}})['max_fetch_retries'] == 3
    assert get_fetch_settings({"fetch": {"include_excluded_category": True}})['include_excluded_category'] is True


@test("Packaged config.json loads with fetch and resolution sections")
def test_load_config():
    config = load_config()
    assert 'fetch' in config
    assert config['os_resolution']['mode'] in ("static", "eol_feed")
    assert load_config(str(project_root / "does_not_exist.json")) == {}


def run_all_tests():
    """Execute all registered tests"""
    print("=" * 80)
    print("Heading Gathering Test Suite")
    print("=" * 80)

    passed = 0
    failed = 0

    for description, test_func in _test_registry:
        try:
            print(f"\n[TEST] {description}")
            test_func()
            passed += 1
            print("  PASS")
        except AssertionError as e:
            failed += 1
            print(f"  FAIL: {e}")
        except Exception as e:
            failed += 1
            print(f"  Exception: {type(e).__name__}: {e}")

    total = passed + failed
    print("\n" + "=" * 80)
    print(f"TEST_RESULTS: PASSED={passed} TOTAL={total} SUITE=\"Heading Gathering\"")
    print("=" * 80)

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(run_all_tests())
