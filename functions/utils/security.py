"""
Request hardening shared by every HTTP function: per-IP rate limiting,
HTML stripping of string inputs and the response security headers.
"""

import time
import logging
from collections import defaultdict
from threading import Lock

from markupsafe import Markup

log = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGIN = 'https://rentdesk.app'


class RateLimiter:
    """
    In-memory sliding-window limiter keyed by client IP.
    State is per function instance; separate instances do not share counts.
    """

    def __init__(self, max_requests: int = 10, window_seconds: float = 1.0):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._attempts = defaultdict(list)
        self._lock = Lock()

    def allow(self, key: str) -> bool:
        """Records a request for `key` and returns False once the window is full."""
        now = time.time()
        cutoff = now - self.window_seconds
        with self._lock:
            attempts = [t for t in self._attempts[key] if t > cutoff]
            if len(attempts) >= self.max_requests:
                self._attempts[key] = attempts
                return False
            attempts.append(now)
            self._attempts[key] = attempts
            return True

    def reset(self, key: str = None) -> None:
        with self._lock:
            if key is None:
                self._attempts.clear()
            else:
                self._attempts.pop(key, None)


def sanitize_input(value):
    """Strips every HTML tag from a string; other values pass through."""
    if not isinstance(value, str):
        return value
    return Markup(value).striptags().strip()


def sanitize_object(value):
    if isinstance(value, dict):
        return {key: sanitize_object(item) for key, item in value.items()}
    if isinstance(value, list):
        return [sanitize_object(item) for item in value]
    return sanitize_input(value)


def security_headers(allowed_origin: str = DEFAULT_ALLOWED_ORIGIN) -> dict:
    return {
        'Access-Control-Allow-Origin': allowed_origin,
        'Access-Control-Allow-Headers': 'Content-Type, Authorization, X-CSRF-Token',
        'Access-Control-Allow-Methods': 'GET, POST, PUT, DELETE, OPTIONS',
        'Access-Control-Allow-Credentials': 'true',
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'X-XSS-Protection': '1; mode=block',
        'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
    }


def get_client_ip(headers) -> str:
    forwarded = headers.get('X-Forwarded-For')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return headers.get('Client-IP') or 'unknown'
