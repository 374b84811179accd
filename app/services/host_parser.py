"""
Host header parsing.

Extracts the candidate institute label from a request's Host header. Pure
string handling: malformed input yields None (a platform level request)
instead of raising.
"""

from __future__ import annotations

import ipaddress
import re
from typing import Optional, Tuple

LOCAL_HOSTNAMES = ("localhost", "127.0.0.1")

_LABEL_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")


def split_host(host: Optional[str]) -> Tuple[str, str]:
    """
    Split a Host header into (hostname, port).

    IPv6 literals come back with an empty hostname since they can never
    carry an institute label.
    """
    raw = (host or "").strip().lower()
    if not raw or raw.startswith("["):
        return "", ""

    hostname, _, port = raw.partition(":")
    if ":" in port:
        # bare IPv6 without brackets
        return "", ""
    return hostname.rstrip("."), port


def _is_ip(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def parse_host(host: Optional[str], platform_domain: Optional[str] = None) -> Optional[str]:
    """
    Return the candidate tenant label for a Host header, or None.

    Examples:
        "acme.platform.com"      -> "acme"
        "platform.com"           -> None
        "acme.localhost:3000"    -> "acme"
        "localhost:3000"         -> None
        "[::1]:8000"             -> None

    Reserved labels such as "www" are reported as-is; classifying them is the
    tenant resolver's job.
    """
    hostname, _ = split_host(host)
    if not hostname or hostname in LOCAL_HOSTNAMES or _is_ip(hostname):
        return None

    labels = hostname.split(".")
    if any(not label for label in labels):
        return None

    domain = (platform_domain or "").strip().lower().split(":")[0]
    if domain and hostname == domain:
        return None

    under_domain = bool(domain) and hostname.endswith("." + domain)
    if not under_domain and labels[-1] != "localhost" and len(labels) <= 2:
        return None

    candidate = labels[0]
    if not _LABEL_RE.match(candidate):
        return None
    return candidate


def platform_root_host(host: Optional[str], platform_domain: Optional[str] = None) -> str:
    """
    Bare platform host for a request, port preserved.

    Used to send a request back to the platform root and as the base for
    institute subdomain URLs.
    """
    hostname, port = split_host(host)
    suffix = f":{port}" if port else ""

    domain = (platform_domain or "").strip().lower()
    if domain:
        return domain if ":" in domain else f"{domain}{suffix}"

    if not hostname:
        return f"localhost{suffix}"

    labels = hostname.split(".")
    if "localhost" in labels or "127.0.0.1" == hostname:
        return f"localhost{suffix}"
    if _is_ip(hostname):
        return f"{hostname}{suffix}"
    return ".".join(labels[-2:]) + suffix
