"""Shared slowapi limiter.

Lives outside main.py so routers can decorate endpoints without a circular
import. Limits are keyed on the client IP; the per-endpoint strings come from
settings (RATE_LIMIT_LOGIN, RATE_LIMIT_REPORTS).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, headers_enabled=False)
