from slowapi import Limiter
from slowapi.util import get_remote_address
from app.config import settings

# Default limit applies to every route through SlowAPIMiddleware;
# routes decorated with limiter.limit() are checked against their own limit instead.
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
