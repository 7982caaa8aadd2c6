"""Masking helpers for personal data that ends up in logs."""


def mask_email(email: str) -> str:
    """Keep the first two characters of the local part and the domain.

    >>> mask_email("alice@example.com")
    'al***@example.com'
    """
    if not email:
        return "[empty]"
    if "@" not in email:
        return f"{email[:2]}***"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def mask_ip_address(ip_address: str) -> str:
    """Hide the host part of an address: the last octet for IPv4, the last group for IPv6."""
    if not ip_address or ip_address == "unknown":
        return "[unknown]"
    if "." in ip_address and ":" not in ip_address:
        parts = ip_address.split(".")
        if len(parts) == 4:
            return f"{parts[0]}.{parts[1]}.{parts[2]}.***"
    if ":" in ip_address:
        return ip_address.rsplit(":", 1)[0] + ":***"
    return ip_address[:8] + "***"


def fingerprint_prefix(fingerprint: str) -> str:
    return fingerprint[:8] if fingerprint else "[none]"
