"""Turn raw records into enriched records.

Module notes:
- Enrichment is deterministic: the same dataset id and rows always produce the
  same keys and derived fields.
- Keys hash the dataset id, the row position and the numeric fields only; the
  ZIP code never contributes to a key.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Iterable

from pledge_analytics.enrich.classify import change_dollar, change_percent, classify_status
from pledge_analytics.models import EnrichedRecord, RawRecord

log = logging.getLogger(__name__)

KEY_PREFIX = "hh_"


def household_key(dataset_id: str, index: int, record: RawRecord) -> str:
    """Return a deterministic household key for a row.

    Args:
        dataset_id: Identifier of the dataset (e.g. the uploaded file name).
        index: Zero-based position of the row in the dataset.
        record: The raw row.

    Returns:
        ``hh_`` followed by 16 hex characters of a BLAKE2b digest.
    """
    content = f"{dataset_id}|{index}|{record.age}|{record.pledge_current}|{record.pledge_prior}"
    digest = hashlib.blake2b(content.encode("utf-8"), digest_size=8).hexdigest()
    return f"{KEY_PREFIX}{digest}"


def enrich_record(dataset_id: str, index: int, record: RawRecord) -> EnrichedRecord:
    return EnrichedRecord(
        **record.model_dump(include=set(RawRecord.model_fields)),
        key=household_key(dataset_id, index, record),
        status=classify_status(record.pledge_current, record.pledge_prior),
        change_dollar=change_dollar(record.pledge_current, record.pledge_prior),
        change_percent=change_percent(record.pledge_current, record.pledge_prior),
    )


def enrich(dataset_id: str, raw_records: Iterable[RawRecord]) -> list[EnrichedRecord]:
    """Enrich every raw record of a dataset.

    Args:
        dataset_id: Identifier seeding the household keys.
        raw_records: Records in dataset order.

    Returns:
        A new list of `EnrichedRecord` in the same order as the input.
    """
    enriched = [
        enrich_record(dataset_id, index, record)
        for index, record in enumerate(raw_records)
    ]
    log.debug("Enriched %d records for dataset %s", len(enriched), dataset_id)
    return enriched
