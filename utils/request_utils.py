"""
Recipedium Request Utilities
Client address and request context for rate limiting and log events
"""

from fastapi import Request
from typing import Dict, Any, Optional
import ipaddress

# Proxy headers consulted in order; the first valid address wins
FORWARDED_IP_HEADERS = ("cf-connecting-ip", "x-forwarded-for", "x-real-ip")


def _first_valid_ip(value: str) -> Optional[str]:
    # X-Forwarded-For lists the original client first
    candidate = value.split(",")[0].strip()
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return None


def get_client_ip(request: Request) -> str:
    """Client address used to key rate limits"""
    for header in FORWARDED_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            ip = _first_valid_ip(value)
            if ip:
                return ip

    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def extract_request_context(request: Request) -> Dict[str, Any]:
    """Fields attached to auth and business log events"""
    forwarded_proto = request.headers.get("x-forwarded-proto", "").lower()
    return {
        "request_id": getattr(request.state, "request_id", None),
        "method": request.method,
        "path": request.url.path,
        "ip": get_client_ip(request),
        "user_agent": request.headers.get("user-agent", "unknown"),
        "secure": request.url.scheme == "https" or forwarded_proto == "https",
    }
