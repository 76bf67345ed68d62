"""
Cache key canonicalization for target URLs.

Two requests for the same resource must share a cache entry even when their
URLs differ only in fragment or query-parameter order. Keys are SHA-1
fingerprints of ``"<region>|<canonical url>"`` under the ``sc:cache:``
namespace.
"""

import hashlib
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

CACHE_NAMESPACE = "sc:cache"


def cache_key(digest: str) -> str:
    return f"{CACHE_NAMESPACE}:{digest}"


def _fingerprint(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()


def canonical_url(target: str) -> str:
    """Return the canonical form of an absolute URL.

    Raises:
        ValueError: If ``target`` is not an absolute URL with a host.
    """
    parts = urlsplit(target.strip())
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"not an absolute URL: {target!r}")
    if any(ch.isspace() for ch in parts.netloc):
        raise ValueError(f"invalid host in URL: {target!r}")

    # Accessing .port validates it (non-numeric or out-of-range raises ValueError)
    port = parts.port
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    netloc = host if port is None else f"{host}:{port}"
    userinfo, sep, _ = parts.netloc.rpartition("@")
    if sep:
        netloc = f"{userinfo}@{netloc}"

    # Stable sort by name: repeated names keep their relative order
    params = sorted(parse_qsl(parts.query, keep_blank_values=True), key=lambda item: item[0])

    return urlunsplit((parts.scheme.lower(), netloc, parts.path or "/", urlencode(params), ""))


def canonicalize(target: str, region: str) -> str:
    """Map a target URL and region to a stable cache key.

    Malformed targets never fail the request: their raw text is fingerprinted
    instead, at the cost of variants of the same resource missing each other.
    """
    try:
        canonical = canonical_url(target)
    except ValueError:
        canonical = target
    return cache_key(_fingerprint(f"{region}|{canonical}"))
