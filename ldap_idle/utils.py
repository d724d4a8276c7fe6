from __future__ import annotations

import ipaddress


def build_server_host(host: str, domain: str) -> str:
    """Qualify a short DC name with the domain.

    IP addresses and names that already contain a dot are returned as is.
    """
    host = (host or "").strip()
    domain = (domain or "").strip().strip(".")
    if not host:
        return domain

    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        if "." in host:
            return host
        return f"{host}.{domain}" if domain else host


def looks_like_dn(value: str) -> bool:
    """Rough check for 'attr=value,...' bind names (no escaping rules)."""
    head = (value or "").split(",", 1)[0]
    return "=" in head
