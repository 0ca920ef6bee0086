"""
Ordering of verified links for review.
"""
from __future__ import annotations

import sys
from typing import Dict, Tuple

from seolinkcheck.models import LinkRecord


def rank_key(url: str, record: LinkRecord) -> Tuple[int, int, int, int]:
    """
    Sort key: mismatched records first, then HTML pages by content-type
    length (everything else last), then status code descending, then
    shorter URLs first.
    """
    if record.status_code == 200 and record.is_html:
        type_rank = len(record.content_type)
    else:
        type_rank = sys.maxsize
    return (
        0 if record.has_mismatch else 1,
        type_rank,
        -record.status_code,
        len(url),
    )


def rank(table: Dict[str, LinkRecord]) -> Dict[str, LinkRecord]:
    """Return a new mapping with the records of ``table`` in review order."""
    ordered = sorted(table.items(), key=lambda item: rank_key(*item))
    return dict(ordered)
