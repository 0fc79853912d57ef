"""
Link previews for shared URLs.

By default the preview is fabricated from the URL's domain; nothing is
fetched. With fetching enabled the page's OpenGraph tags fill in whatever
they provide and the fabricated fields cover the rest.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import urlsplit

import requests
from bs4 import BeautifulSoup

from airfryhub.validation import validate_url

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5  # seconds
PLACEHOLDER_IMAGE = (
    "https://via.placeholder.com/400x200/3B82F6/FFFFFF?text=Link+Preview"
)
PLACEHOLDER_DESCRIPTION = (
    "This is a preview of the linked content. In a real implementation, "
    "this would be fetched from the actual URL."
)
FAVICON_URL = "https://www.google.com/s2/favicons?domain={domain}&sz=32"


@dataclass
class LinkPreview:
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = None
    favicon: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


def mock_preview(url: str) -> LinkPreview:
    url = validate_url(url, field="link_url")
    domain = urlsplit(url).hostname or ""
    return LinkPreview(
        url=url,
        title=f"Content from {domain}",
        description=PLACEHOLDER_DESCRIPTION,
        image=PLACEHOLDER_IMAGE,
        site_name=domain,
        favicon=FAVICON_URL.format(domain=domain),
    )


def _meta_content(soup: BeautifulSoup, *names: str) -> Optional[str]:
    for name in names:
        tag = soup.find("meta", attrs={"property": name}) or soup.find(
            "meta", attrs={"name": name}
        )
        if tag and tag.get("content"):
            return tag["content"].strip()
    return None


def fetch_preview(url: str) -> LinkPreview:
    preview = mock_preview(url)
    try:
        response = requests.get(preview.url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Error fetching link preview for %s: %s", preview.url, exc)
        return preview

    soup = BeautifulSoup(response.content, "html.parser")
    page_title = soup.title.string.strip() if soup.title and soup.title.string else None
    preview.title = _meta_content(soup, "og:title", "twitter:title") or page_title or preview.title
    preview.description = (
        _meta_content(soup, "og:description", "description") or preview.description
    )
    preview.image = _meta_content(soup, "og:image", "twitter:image") or preview.image
    preview.site_name = _meta_content(soup, "og:site_name") or preview.site_name
    return preview


def build_preview(url: str, fetch: bool = False) -> LinkPreview:
    if fetch:
        return fetch_preview(url)
    return mock_preview(url)
