import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests

from app.platform.config import settings

logger = logging.getLogger(__name__)

# Child sitemaps fetched from a sitemap index before giving up on an exact count
MAX_CHILD_SITEMAPS = 20


class SitemapService:

    @staticmethod
    def count_urls(site_url: str, timeout: Optional[int] = None) -> Optional[int]:
        """
        Count the page URLs listed in a site's sitemap.

        Fetches /sitemap.xml at the site root and follows one level of
        <sitemapindex>. Child sitemaps beyond MAX_CHILD_SITEMAPS are not
        fetched, so very large sites are undercounted, never overcounted.

        Args:
            site_url: Any URL on the site
            timeout: Per-request timeout in seconds (default: SITEMAP_FETCH_TIMEOUT)

        Returns:
            Number of <url> entries, or None if no usable sitemap was found
        """
        timeout = timeout or settings.SITEMAP_FETCH_TIMEOUT
        parsed = urlparse(site_url)
        if not parsed.scheme or not parsed.netloc:
            logger.warning(f"Cannot locate sitemap for invalid URL: {site_url}")
            return None

        sitemap_url = urljoin(f"{parsed.scheme}://{parsed.netloc}", "/sitemap.xml")
        root = SitemapService._fetch_xml(sitemap_url, timeout)
        if root is None:
            return None

        url_count, child_sitemaps = SitemapService._parse(root)
        if not child_sitemaps:
            logger.info(f"Sitemap {sitemap_url} lists {url_count} URLs")
            return url_count

        if len(child_sitemaps) > MAX_CHILD_SITEMAPS:
            logger.info(
                f"Sitemap index {sitemap_url} has {len(child_sitemaps)} children, "
                f"counting the first {MAX_CHILD_SITEMAPS}"
            )

        fetched_any = False
        for child_url in child_sitemaps[:MAX_CHILD_SITEMAPS]:
            child = SitemapService._fetch_xml(child_url, timeout)
            if child is None:
                continue
            fetched_any = True
            child_count, _ = SitemapService._parse(child)
            url_count += child_count

        if not fetched_any:
            return None

        logger.info(f"Sitemap index {sitemap_url} lists {url_count} URLs")
        return url_count

    @staticmethod
    def _fetch_xml(url: str, timeout: int) -> Optional[ET.Element]:
        try:
            response = requests.get(url, timeout=timeout, headers={"Accept": "application/xml,text/xml"})
            response.raise_for_status()
            return ET.fromstring(response.content)
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch sitemap {url}: {e}")
        except ET.ParseError as e:
            logger.warning(f"Sitemap {url} is not valid XML: {e}")
        return None

    @staticmethod
    def _parse(root: ET.Element) -> Tuple[int, List[str]]:
        """Return (<url> entry count, child sitemap locations)."""
        tag = _local_name(root.tag)
        if tag == "sitemapindex":
            children = [
                loc.text.strip()
                for loc in root.iter()
                if _local_name(loc.tag) == "loc" and loc.text and loc.text.strip()
            ]
            return 0, children

        if tag == "urlset":
            return sum(1 for child in root if _local_name(child.tag) == "url"), []

        return 0, []


def _local_name(tag: str) -> str:
    """Strip the XML namespace, some sitemaps omit it."""
    return tag.rsplit("}", 1)[-1]
