"""
Data structures shared by the verifier, analyzer, ranker and report.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Derived check name -> warning label shown in reports
CHECK_LABELS: Dict[str, str] = {
    "canonical_header_match": "Canonical Header Mismatch",
    "canonical_static_match": "Canonical Static Mismatch",
    "has_seo_title": "Missing SEO Title",
    "rendered_canonical_match": "Rendered Canonical Mismatch",
    "title_match": "Title Mismatch",
    "canonical_match": "Canonical Mismatch",
}


@dataclass(slots=True)
class LinkRecord:
    """
    Verification result for a single URL.

    The derived check fields stay ``None`` until the analyzer finds both of
    their operands present; ``None`` means "not applicable", not "failed".
    """
    url: str
    status_code: int
    redirect_location: Optional[str] = None
    canonical_header: Optional[str] = None
    content_type: Optional[str] = None
    title_static: Optional[str] = None
    canonical_static: Optional[str] = None
    title_rendered: Optional[str] = None
    canonical_rendered: Optional[str] = None

    canonical_header_match: Optional[bool] = None
    canonical_static_match: Optional[bool] = None
    rendered_canonical_match: Optional[bool] = None
    title_match: Optional[bool] = None
    canonical_match: Optional[bool] = None
    has_seo_title: Optional[bool] = None

    def checks(self) -> Dict[str, bool]:
        """Return the derived checks that were applicable to this record."""
        return {
            name: value
            for name in CHECK_LABELS
            if (value := getattr(self, name)) is not None
        }

    def mismatches(self) -> List[str]:
        """Return warning labels for every failed check."""
        return [CHECK_LABELS[name] for name, ok in self.checks().items() if not ok]

    @property
    def has_mismatch(self) -> bool:
        return any(ok is False for ok in self.checks().values())

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def is_html(self) -> bool:
        return bool(self.content_type) and "html" in self.content_type

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output, leaving out checks that did not apply."""
        data: Dict[str, Any] = {
            "url": self.url,
            "status_code": self.status_code,
            "redirect_location": self.redirect_location,
            "canonical_header": self.canonical_header,
        }
        if self.status_code == 200:
            data.update(
                content_type=self.content_type,
                title_static=self.title_static,
                canonical_static=self.canonical_static,
                title_rendered=self.title_rendered,
                canonical_rendered=self.canonical_rendered,
            )
        data.update(self.checks())
        return data


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during a run for summary output."""
    links_discovered: int = 0
    links_verified: int = 0
    network_errors: int = 0
    render_errors: int = 0
    other_failures: int = 0
    status_counts: Dict[int, int] = field(default_factory=lambda: defaultdict(int))
    mismatched: int = 0
    pages_without_title: int = 0

    def record_result(self, record: Optional[LinkRecord]) -> None:
        """Record the outcome of one verification task."""
        if record is None:
            self.network_errors += 1
            return
        self.links_verified += 1
        self.status_counts[record.status_code] += 1

    def record_analysis(self, record: LinkRecord) -> None:
        """Record analyzer outcome statistics."""
        if record.has_mismatch:
            self.mismatched += 1
        if record.has_seo_title is False:
            self.pages_without_title += 1
