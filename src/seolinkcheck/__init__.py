"""
Link checker that verifies every same-domain link of a page or feed, comparing
canonical URLs and titles between raw HTML, rendered DOM and HTTP headers.
"""
from seolinkcheck.core import check_site, check_site_async, CheckResult
from seolinkcheck.models import CrawlStats, LinkRecord

__version__ = "1.0.0"
__all__ = ["check_site", "check_site_async", "CheckResult", "CrawlStats", "LinkRecord"]
