"""
HTML and JSON reports for a finished run.
"""
from __future__ import annotations

import json
import logging
import re
import webbrowser
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Dict, List, Optional

from seolinkcheck.models import LinkRecord

logger = logging.getLogger(__name__)

STYLE = """
* { box-sizing: border-box; margin: 0; padding: 0; }
body { font-family: Arial, sans-serif; font-size: 16px; line-height: 1.5;
       color: #333; background-color: #f5f5f5; padding: 20px; }
h1, h2 { margin-top: 20px; margin-bottom: 10px; }
a { color: #007bff; text-decoration: none; }
a:hover { text-decoration: underline; }
table { border-collapse: collapse; width: 100%; margin-bottom: 20px; }
th, td { text-align: left; padding: 8px; border: 1px solid black; }
th { background-color: #ddd; }
.warning td { background-color: #ffffcc; }
.mono { font-family: monospace; }
.content-type { text-transform: uppercase; }
"""

REDIRECT_COLUMNS = ["Redirect URL"]
SUCCESS_COLUMNS = [
    "Content Type",
    "Canonical Header",
    "Canonical Static",
    "Title Static",
    "Canonical Rendered",
    "Title Rendered",
]


def report_filename(seed_url: str, now: Optional[datetime] = None) -> str:
    """report_<seed with non-alphanumerics as _>_<timestamp>.html"""
    now = now or datetime.now()
    safe_url = re.sub(r"[^a-z0-9]", "_", seed_url, flags=re.IGNORECASE)
    return f"report_{safe_url}_{now.strftime('%Y-%m-%dT%H-%M-%S')}.html"


def _link(url: Optional[str]) -> str:
    if not url:
        return "N/A"
    return f'<a href="{escape(url)}" target="_blank">{escape(url)}</a>'


def _cell(value: Optional[str], css: str = "") -> str:
    class_attr = f' class="{css}"' if css else ""
    return f"<td{class_attr}>{escape(value) if value else 'N/A'}</td>"


def _row(url: str, record: LinkRecord) -> str:
    warnings = " ".join(f"&#9888; {label}." for label in record.mismatches())
    cells = [
        f"<td>{_link(url)}</td>",
        f"<td>{record.status_code}</td>",
        f"<td>{warnings}</td>",
    ]
    if record.is_redirect:
        cells.append(f"<td>{_link(record.redirect_location)}</td>")
    elif 200 <= record.status_code < 300:
        cells += [
            _cell(record.content_type, "mono content-type"),
            _cell(record.canonical_header, "mono"),
            _cell(record.canonical_static, "mono"),
            _cell(record.title_static, "mono"),
            _cell(record.canonical_rendered),
            _cell(record.title_rendered),
        ]
    css = ' class="warning"' if warnings else ""
    return f"<tr{css}>{''.join(cells)}</tr>"


def _columns(status_code: int) -> List[str]:
    columns = ["URL", "Status Code", "Warnings"]
    if 300 <= status_code < 400:
        columns += REDIRECT_COLUMNS
    elif 200 <= status_code < 300:
        columns += SUCCESS_COLUMNS
    return columns


def render_html(seed_url: str, links: Dict[str, LinkRecord], now: Optional[datetime] = None) -> str:
    """
    Render the report: one table per status code, highest first, rows in
    the order of ``links``.
    """
    now = now or datetime.now()
    parts = [
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">",
        f"<title>Link Checker Report</title><style>{STYLE}</style></head><body>",
        "<h1>Link Checker Report</h1>",
        f"<p>Crawled URL: {_link(seed_url)}</p>",
        f"<p>Crawl Time: {escape(now.strftime('%Y-%m-%d %H:%M:%S'))}</p>",
    ]
    for status_code in sorted({r.status_code for r in links.values()}, reverse=True):
        header = "".join(f"<th>{name}</th>" for name in _columns(status_code))
        rows = "".join(
            _row(url, record) for url, record in links.items()
            if record.status_code == status_code
        )
        parts.append(
            f"<h2>HTTP {status_code}</h2>"
            f"<table><thead><tr>{header}</tr></thead><tbody>{rows}</tbody></table>"
        )
    parts.append("</body></html>")
    return "\n".join(parts)


def write_html_report(seed_url: str, links: Dict[str, LinkRecord], out_dir: Path) -> Path:
    """Write the HTML report into ``out_dir`` and return its path."""
    now = datetime.now()
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / report_filename(seed_url, now)
    path.write_text(render_html(seed_url, links, now), encoding="utf-8")
    logger.info("HTML report generated: %s", path)
    return path


def links_to_json(links: Dict[str, LinkRecord], pretty: bool = False) -> str:
    payload = [record.to_dict() for record in links.values()]
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)


def open_report(path: Path) -> bool:
    """Open ``path`` in the default viewer. Failure is logged, never raised."""
    try:
        opened = webbrowser.open(path.resolve().as_uri())
    except webbrowser.Error as e:
        logger.warning("Could not open %s: %s", path, e)
        return False
    if not opened:
        logger.warning("No viewer available for %s", path)
    return opened
