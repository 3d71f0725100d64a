"""Rate limiting for submission endpoints.

Keys on the client IP. ``X-Forwarded-For`` is only honored when the direct
peer is inside one of the configured trusted proxy ranges.
"""

import ipaddress
from functools import lru_cache

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import get_settings
from .logging_config import get_logger

logger = get_logger("apna.rate_limit")

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@lru_cache
def trusted_networks() -> tuple[IPNetwork, ...]:
    """Parse the configured trusted proxy CIDRs, skipping invalid entries."""
    networks = []
    for cidr in get_settings().trusted_proxy_cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr.strip(), strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr!r}")
    return tuple(networks)


def is_trusted_proxy(ip_str: str, networks: tuple[IPNetwork, ...] | None = None) -> bool:
    """Check if an IP is in the trusted proxy list."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    if networks is None:
        networks = trusted_networks()
    return any(addr in network for network in networks)


def get_client_ip(request: Request) -> str:
    """Resolve client IP, only honoring X-Forwarded-For from trusted proxies."""
    direct_ip = get_remote_address(request)

    if is_trusted_proxy(direct_ip):
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()
            if client_ip:
                return client_ip

    return direct_ip


def submission_limit() -> str:
    return get_settings().submission_rate_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded for {get_client_ip(request)} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={"message": f"Rate limit exceeded: {exc.detail}"},
    )


limiter = Limiter(key_func=get_client_ip)
