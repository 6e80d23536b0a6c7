"""
api/limiter.py -- slowapi rate limiter construction.

create_app() builds one Limiter per application and stores it on
app.state.limiter, where SlowAPIMiddleware looks for it by convention. The
same instance decorates the login route in api/routes/users.py, so the
middleware and the route share one in-memory counter store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import Settings


def build_limiter(settings: Settings) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        storage_uri="memory://",
        enabled=settings.rate_limit_enabled,
    )
