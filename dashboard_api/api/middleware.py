"""HTTP middleware - per-IP rate limiting of configured paths"""

import ipaddress
import logging
from functools import lru_cache
from typing import FrozenSet, Iterable, Tuple, Union

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from dashboard_api.config import settings
from dashboard_api.core.exceptions import RateLimitExceededError
from dashboard_api.core.metrics import RATE_LIMITED, RATE_LIMITER_ENTRIES
from dashboard_api.core.timeutils import utcnow

logger = logging.getLogger(__name__)


Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


@lru_cache(maxsize=8)
def _trusted_proxies(entries: Tuple[str, ...]) -> Tuple[Tuple[Network, ...], FrozenSet[str]]:
    """Split TRUSTED_PROXIES into networks (addresses or CIDR ranges) and literal host names"""
    networks = []
    names = set()
    for entry in entries:
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            names.add(entry)
    return tuple(networks), frozenset(names)


def is_trusted_proxy(address: str, entries: Iterable[str]) -> bool:
    networks, names = _trusted_proxies(tuple(entries))
    if address in names:
        return True
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(ip in network for network in networks)


def client_ip(request: Request) -> str:
    """
    Address the rate limiter keys on.

    The peer address, unless the peer is a trusted proxy. Then X-Forwarded-For
    is walked from the right, skipping trusted proxies, and the first untrusted
    address wins. Entries left of it were written by the client and are ignored.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = settings.TRUSTED_PROXIES
    if not trusted or not is_trusted_proxy(peer, trusted):
        return peer

    hops = [hop.strip() for hop in request.headers.get("X-Forwarded-For", "").split(",")]
    hops = [hop for hop in hops if hop]
    for index in range(len(hops) - 1, -1, -1):
        hop = hops[index]
        try:
            ipaddress.ip_address(hop)
        except ValueError:
            # Garbage in the chain: fall back to the proxy itself.
            return peer
        if index == 0 or not is_trusted_proxy(hop, trusted):
            return hop
    return peer


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Consume one token from the client's bucket for rate-limited paths, before
    routing and authentication. The limiter is read from app.state so tests can
    swap it.
    """

    async def dispatch(self, request: Request, call_next):
        limiter = getattr(request.app.state, "rate_limiter", None)
        if limiter is not None and limiter.should_limit(request.url.path):
            ip = client_ip(request)
            allowed = limiter.allow(ip)
            RATE_LIMITER_ENTRIES.set(len(limiter))
            if not allowed:
                RATE_LIMITED.inc()
                logger.warning(f"Rate limit exceeded for {ip} on {request.url.path}")
                exc = RateLimitExceededError("Rate limit exceeded. Please try again later.")
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={
                        "success": False,
                        "error": exc.message,
                        "code": exc.code,
                        "details": exc.details,
                        "path": request.url.path,
                        "timestamp": utcnow().isoformat(),
                    },
                    headers={"Retry-After": "60"},
                )
        return await call_next(request)
