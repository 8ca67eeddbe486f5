#!/usr/bin/env python3
"""
Update History Tool

Fetches Windows update-history pages, parses their navigation headings into
per-build update records, resolves OS names and prints the deduplicated set.
"""

import argparse
from typing import Any, Dict, List, Optional

import pandas as pd

from .gatherData import load_config, get_fetch_settings, get_user_agent, gather_headings
from .os_lookup import get_lookup_table
from .process_records import process_headings, records_to_dataframe
from .record_builder import UpdateRecord
from ..logging.workflow_logger import get_logger

logger = get_logger()


def run_pipeline(config: Dict[str, Any], headings: Optional[List[str]] = None) -> List[UpdateRecord]:
    """
    Run fetch, lookup and processing stages from configuration.

    When headings are supplied the fetch stage is skipped.
    """
    if headings is None:
        settings = get_fetch_settings(config)
        headings = gather_headings(settings['sources'], settings, user_agent=get_user_agent(config))

    lookup = get_lookup_table(config)
    return process_headings(headings, lookup)


def main():
    """Main function to build the update record set from configured sources."""
    parser = argparse.ArgumentParser(description="Extract OS update records from update-history pages")
    parser.add_argument("--config", help="Path to an alternate config.json")
    parser.add_argument("--include-excluded", action="store_true",
                        help="Keep headings carrying the excluded category marker")
    parser.add_argument("--eol-feed", action="store_true", help="Resolve OS names from the EOL feed")
    parser.add_argument("--log-dir", help="Also write the run log to a file in this directory")
    args = parser.parse_args()

    config = load_config(args.config)
    if args.include_excluded:
        config.setdefault('fetch', {})['include_excluded_category'] = True
    if args.eol_feed:
        config.setdefault('os_resolution', {})['mode'] = 'eol_feed'

    if args.log_dir:
        mode = config.get('os_resolution', {}).get('mode', 'static')
        logger.set_run_logs_directory(args.log_dir)
        logger.start_file_logging(f"update_history {mode}")

    try:
        records = run_pipeline(config)
        logger.info(f"Extracted {len(records)} update records", group="INIT")
    finally:
        logger.stop_file_logging()

    with pd.option_context('display.max_rows', None, 'display.width', 200):
        print(records_to_dataframe(records).to_string(index=False))


if __name__ == "__main__":
    main()
