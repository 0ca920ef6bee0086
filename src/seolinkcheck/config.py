"""
Defaults and run settings for the link checker.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

# Synthetic browser identity sent by both the static and the rendered fetch
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537"
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
BROWSER_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept-Language": ACCEPT_LANGUAGE,
}

# Playwright navigation timeout (milliseconds)
RENDER_TIMEOUT_MS = 60_000

DEFAULT_TIMEOUT = 15.0
DEFAULT_CONCURRENCY = 10
REPORTS_DIR = Path("reports")


@dataclass(slots=True)
class CheckSettings:
    """Settings for a single run, usually built from CLI arguments."""
    timeout_s: Optional[float] = DEFAULT_TIMEOUT
    concurrency: Optional[int] = DEFAULT_CONCURRENCY
    headless: bool = True
    render_timeout_ms: int = RENDER_TIMEOUT_MS
    reports_dir: Path = REPORTS_DIR
