# Import Python dependencies
from datetime import date
from typing import Iterable, List

import pandas as pd

# Import Update History Tools
from .os_lookup import OSLookupTable
from .record_builder import UpdateRecord, build_records

# Import the logging system
from ..logging.workflow_logger import get_logger, start_processing, end_processing

logger = get_logger()

RECORD_COLUMNS = ['kb', 'build', 'date', 'clientOS', 'serverOS', 'patchType']


def record_identity(record: UpdateRecord):
    """(kb, build) names one update; date and OS names are not part of identity"""
    return (record.kb, str(record.build))


def record_sort_key(record: UpdateRecord):
    """Date ascending (undated last), then KB, then build compared numerically"""
    return (
        record.date is None,
        record.date or date.min,
        record.kb or "",
        record.build,
    )


def dedupe_and_sort(records: Iterable[UpdateRecord]) -> List[UpdateRecord]:
    """
    Collapse records sharing (kb, build) and return them in output order.

    The sort is stable and runs before grouping, so the surviving record of
    each group is the first one in sorted order.
    """
    ordered = sorted(records, key=record_sort_key)

    seen = set()
    result = []
    for record in ordered:
        identity = record_identity(record)
        if identity in seen:
            continue
        seen.add(identity)
        result.append(record)

    logger.data_summary("Deduplication", group="DEDUP",
                        input_records=len(ordered), output_records=len(result),
                        duplicates=len(ordered) - len(result))
    return result


def process_headings(headings: Iterable[str], lookup: OSLookupTable) -> List[UpdateRecord]:
    """Run every heading through parse + expand, then dedupe and sort the lot"""
    start_processing()

    candidates: List[UpdateRecord] = []
    matched = 0
    total = 0
    for heading in headings:
        total += 1
        records = build_records(heading, lookup)
        if records:
            matched += 1
        candidates.extend(records)

    logger.info(f"Parsed {matched}/{total} headings into {len(candidates)} candidate records", group="PARSE")
    result = dedupe_and_sort(candidates)

    end_processing(f"{len(result)} update records")
    return result


def records_to_dataframe(records: Iterable[UpdateRecord]) -> pd.DataFrame:
    """Tabular view of update records"""
    return pd.DataFrame([record.to_dict() for record in records], columns=RECORD_COLUMNS)
