"""
Crawl Queue Prioritization

Sorts discovered URLs into page priority categories and orders the crawl
frontier by a profile's priority order.
"""
from typing import Iterable, List, Sequence
from urllib.parse import urlparse

from app.features.scan_profiles.schemas.profile import PagePriority

PRODUCT_KEYWORDS = (
    'product', 'products', 'service', 'services', 'pricing', 'plans',
    'features', 'solutions', 'shop', 'store', 'checkout', 'cart',
)

CONTENT_KEYWORDS = (
    'blog', 'news', 'article', 'articles', 'post', 'posts', 'resources',
    'guides', 'docs', 'case-studies', 'stories', 'events', 'press',
)

UTILITY_KEYWORDS = (
    'privacy', 'terms', 'legal', 'cookie', 'cookies', 'login', 'logout',
    'signin', 'signup', 'register', 'account', 'sitemap', 'search',
    'accessibility-statement', 'disclaimer', 'imprint',
)


def _path_segments(url: str) -> List[str]:
    return [segment for segment in urlparse(url).path.lower().split('/') if segment]


def classify_page_priority(url: str) -> PagePriority:
    """
    Classify a URL by its path.

    Root is the homepage. Keyword matches decide product, content and
    utility, checked in that order per segment; any other top-level page
    counts as navigation and anything deeper as content.
    """
    segments = _path_segments(url)
    if not segments or segments in (['index.html'], ['index.php'], ['home']):
        return PagePriority.homepage

    for segment in segments:
        slug = segment.rsplit('.', 1)[0]
        if slug in UTILITY_KEYWORDS or any(slug.startswith(kw) for kw in ('privacy', 'terms', 'cookie')):
            return PagePriority.utility
        if slug in PRODUCT_KEYWORDS:
            return PagePriority.product
        if slug in CONTENT_KEYWORDS:
            return PagePriority.content

    return PagePriority.navigation if len(segments) == 1 else PagePriority.content


def order_frontier(urls: Iterable[str], priority_order: Sequence[PagePriority]) -> List[str]:
    """Stable sort by category rank, then by shorter path."""
    rank = {priority: index for index, priority in enumerate(priority_order)}
    fallback_rank = len(rank)
    return sorted(
        urls,
        key=lambda url: (
            rank.get(classify_page_priority(url), fallback_rank),
            len(_path_segments(url)),
        ),
    )
