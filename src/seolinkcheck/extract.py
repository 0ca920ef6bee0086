"""
Link and SEO metadata extraction from fetched content.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Union

from bs4 import BeautifulSoup

Markup = Union[bytes, str]

FEED_URL_RE = re.compile(r"\.(?:xml|rss)$|/feed/?$")

# scheme, optional userinfo, host, optional port, optional path. A match never
# ends in sentence punctuation such as "." or ",".
URL_RE = re.compile(
    r"https?://"
    r"(?:\w+:?\w*@)?"
    r"[\w-]+(?:\.[\w-]+)*"
    r"(?::[0-9]+)?"
    r"(?:/(?:[\w#!:.?+=&%@\-/]*[\w#=&%@\-/])?)?"
)


@dataclass(slots=True)
class HeadMetadata:
    """SEO-relevant values read from a document."""
    title: Optional[str] = None
    canonical: Optional[str] = None


def is_feed_url(url: str) -> bool:
    """Return True if ``url`` looks like an RSS/XML feed rather than a page."""
    return bool(FEED_URL_RE.search(url))


def _has_link_attr(tag) -> bool:
    return tag.has_attr("href") or tag.has_attr("src")


def extract_markup_links(html: Markup) -> List[str]:
    """Extract href (or src) values from every element that carries one."""
    soup = BeautifulSoup(html, "lxml")
    links = []
    for tag in soup.find_all(_has_link_attr):
        value = tag.get("href") or tag.get("src")
        if value:
            links.append(value)
    return links


def extract_feed_links(payload: Markup) -> List[str]:
    """Extract every http(s) URL from the text content of a feed document."""
    soup = BeautifulSoup(payload, "xml")
    if soup.find() is not None:
        text = soup.get_text("\n")
    elif isinstance(payload, bytes):
        # not XML at all; treat as plain text
        text = payload.decode("utf-8", errors="replace")
    else:
        text = payload
    return URL_RE.findall(text)


def extract_head_metadata(html: Markup, head_only: bool = True) -> HeadMetadata:
    """
    Extract the page title and canonical link.

    With ``head_only`` the lookup is limited to ``<head>``, as a crawler
    reading the raw HTML would see it. Rendered DOMs are searched as a whole.
    """
    soup = BeautifulSoup(html, "lxml")
    scope = soup.head if head_only else soup
    if scope is None:
        return HeadMetadata()

    title = None
    title_tag = scope.find("title")
    if title_tag is not None:
        title = title_tag.get_text().strip() or None

    canonical = None
    link_tag = scope.find("link", rel="canonical")
    if link_tag is not None:
        canonical = link_tag.get("href") or None

    return HeadMetadata(title=title, canonical=canonical)
