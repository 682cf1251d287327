from urllib.parse import urldefrag, urlparse


def same_origin(url: str, base_url: str) -> bool:
    """
    Check if URL shares scheme and host with base_url.

    Args:
        url: URL to check
        base_url: Any URL on the site being crawled

    Returns:
        True if both URLs have the same scheme://netloc
    """
    try:
        parsed = urlparse(url)
        base = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            return False
        return (parsed.scheme, parsed.netloc) == (base.scheme, base.netloc)
    except ValueError:
        return False


def normalize_link(url: str) -> str:
    """Drop the fragment; /about and /about#team are the same page."""
    return urldefrag(url)[0]
