"""
Shared slowapi limiter. Routes decorate with ``@limiter.limit(...)``; the
application registers it on ``app.state`` at startup.
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
