"""
app/limits.py — Shared slowapi limiter
=======================================
Imported by every router that rate-limits a route, and registered on the app
in app/main.py. Keyed by client address; the admin API additionally keys by
bearer token so a signed-in admin is not throttled by a shared proxy IP.
"""

import hashlib

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address


def _rate_limit_key(request: Request) -> str:
    """Use token hash as rate limit key for authenticated requests, IP otherwise."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        if token:
            return f"token:{hashlib.sha256(token.encode()).hexdigest()[:16]}"
    return get_remote_address(request)


limiter = Limiter(key_func=_rate_limit_key, default_limits=["120/minute"])
