"""
Custom exceptions for the RRR bulk emitter.

None of these reach callers of ``process_record`` / ``tick``; they classify
send outcomes for logging, metrics and the failure guard.
"""

import httpx


class EmitterError(Exception):
    """Base error for the emitter."""

    pass


class ConfigurationInvalid(EmitterError):
    """Endpoint URL missing or empty at initialization."""

    pass


class ResponseStatusError(EmitterError):
    """Bulk call answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"bulk request failed with HTTP {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body


class TransportFailure(EmitterError):
    """Connection, timeout or protocol level failure. Trips the failure guard."""

    pass


def map_transport_error(e: Exception) -> EmitterError:
    if isinstance(e, EmitterError):
        return e
    if isinstance(e, (httpx.TransportError, httpx.InvalidURL, OSError, TimeoutError)):
        return TransportFailure(str(e) or type(e).__name__)
    return TransportFailure(f"{type(e).__name__}: {e}")
