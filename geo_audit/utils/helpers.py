"""General-purpose helper utilities."""

import html
import re
from urllib.parse import urlparse


def ensure_scheme(url: str, scheme: str = "https") -> str:
    """Prefix *url* with ``scheme://`` when it has none; drop trailing slashes.

    Examples:
        >>> ensure_scheme("example.com/")
        'https://example.com'
        >>> ensure_scheme("http://example.com")
        'http://example.com'
    """
    url = (url or "").strip().rstrip("/")
    if not url:
        return url
    if url.startswith("//"):
        return scheme + ":" + url
    if "://" not in url:
        return scheme + "://" + url
    return url


def extract_domain(url: str) -> str:
    """Extract the domain from a URL.

    Args:
        url: Full URL string.

    Returns:
        Domain name without protocol or path.
    """
    parsed = urlparse(url if "://" in url else f"https://{url}")
    return (parsed.hostname or "").lower()


def clean_html(text: str) -> str:
    """Strip HTML tags, unescape entities and collapse whitespace."""
    clean = re.sub(r"<[^>]+>", " ", text or "")
    clean = html.unescape(clean)
    clean = re.sub(r"\s+", " ", clean)
    return clean.strip()


def normalise_audit_url(url: str) -> str:
    """Return an absolute http(s) URL for an audit target.

    Absolute and scheme-relative (``//host/path``) URLs are accepted; a bare
    host gets ``https://``.  Raises ``ValueError`` for anything else.
    """
    candidate = ensure_scheme(url)
    if not candidate:
        raise ValueError("URL is empty.")
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Invalid scheme {parsed.scheme!r}; audits need http or https.")
    host = parsed.hostname or ""
    if not host or any(ch.isspace() for ch in candidate):
        raise ValueError(f"No valid host in {url!r}.")
    return candidate


def normalise_site_domain(domain: str) -> str:
    """Normalise WordPress site input (``yoursite.com`` or a full URL).

    Returns ``scheme://host[/subdir]`` with no trailing slash, query or
    fragment, ready to prefix ``/wp-json/...``.
    """
    parsed = urlparse(normalise_audit_url(domain))
    if parsed.query or parsed.fragment:
        raise ValueError("WordPress site address must not contain a query or fragment.")
    path = parsed.path.rstrip("/")
    if "/wp-json/" in path + "/":
        raise ValueError("Use the site address, not a /wp-json endpoint.")
    return f"{parsed.scheme}://{parsed.netloc}{path}"
