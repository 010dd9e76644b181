"""
RRR Bulk Emitter

Ships API Request/Response Records to a log store's ``_bulk`` endpoint as
NDJSON, flushing on size (50 records) or time (1s, driven by ``tick``) and
disabling itself for good after a transport failure.

Usage:
    from rrr_emitter import RRREmitter

    emitter = RRREmitter()
    emitter.initialize({"endpointUrl": "http://localhost:5080/api/default"})
    emitter.process_record({"@timestamp": "2023-06-15T10:00:00Z", "id": "r1"})
    emitter.tick()
"""

from .emitter import RRREmitter, wall_clock_ms
from .guard import EmitterState, FailureGuard
from .models import EmitterConfig, EmitterHealth, FlushOutcome, FlushPolicy
from .transport import BulkResponse, BulkTransport, HttpxBulkTransport
from .ticker import Ticker
from .errors import EmitterError, ConfigurationInvalid, ResponseStatusError, TransportFailure

__version__ = "1.0.0"
__all__ = [
    "RRREmitter",
    "wall_clock_ms",
    "EmitterState",
    "FailureGuard",
    "EmitterConfig",
    "EmitterHealth",
    "FlushOutcome",
    "FlushPolicy",
    "BulkResponse",
    "BulkTransport",
    "HttpxBulkTransport",
    "Ticker",
    "EmitterError",
    "ConfigurationInvalid",
    "ResponseStatusError",
    "TransportFailure",
]
