"""
Bulk emitter for Request/Response Records.

Records are preprocessed, serialized into an NDJSON bulk buffer and shipped
to ``<endpoint>/_bulk`` when either the size threshold is reached or a tick
finds the buffer older than the flush interval. Sends are fire-and-forget
asyncio tasks: the buffer is cleared as soon as the send is scheduled, and a
transport failure permanently disables the emitter.

Usage:

    emitter = RRREmitter()
    emitter.initialize({"endpointUrl": "http://localhost:5080/api/default"})
    emitter.process_record(rrr)   # size-triggered flush
    emitter.tick()                # time-triggered flush
    await emitter.aclose()
"""

from __future__ import annotations

import asyncio
import inspect
import threading
import time
from typing import Any, Callable, Mapping, MutableMapping, Optional, Set, Union

from loguru import logger

from .buffer import ID_KEY, BulkBuffer, BulkSnapshot
from .errors import ResponseStatusError, map_transport_error
from .guard import EmitterState, FailureGuard
from .metrics import FLUSHES_TOTAL, RECORDS_TOTAL, SEND_LATENCY_MS, SENDS_TOTAL
from .models import EmitterConfig, EmitterHealth, FlushOutcome, FlushPolicy
from .preprocess import preprocess_record
from .transport import BulkTransport, HttpxBulkTransport

Clock = Callable[[], float]
CompletionHandler = Callable[[FlushOutcome], Any]


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class RRREmitter:
    def __init__(
        self,
        name: str = "default",
        *,
        transport: Optional[BulkTransport] = None,
        policy: Optional[FlushPolicy] = None,
        clock: Optional[Clock] = None,
        on_complete: Optional[CompletionHandler] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.name = name
        self._transport = transport
        self._owns_transport = transport is None
        self._policy = policy or FlushPolicy()
        self._clock = clock or wall_clock_ms
        self._on_complete = on_complete
        self._loop = loop

        self._guard = FailureGuard(name)
        self._config: Optional[EmitterConfig] = None
        self._buffer = BulkBuffer()

        # append + size check + snapshot-and-clear happen under this lock
        self._lock = threading.Lock()
        self._tasks: Set[asyncio.Task] = set()

        self._flushes = 0
        self._records_sent = 0
        self._status_errors = 0
        self._transport_errors = 0
        self._last_error: Optional[str] = None

    # --------------- context management

    async def __aenter__(self) -> "RRREmitter":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose(flush=True)

    # --------------- state

    @property
    def state(self) -> EmitterState:
        return self._guard.state

    @property
    def enabled(self) -> bool:
        return self._guard.enabled

    @property
    def config(self) -> Optional[EmitterConfig]:
        return self._config

    @property
    def count(self) -> int:
        return self._buffer.count

    @property
    def last_flush(self) -> float:
        return self._buffer.last_flush

    @property
    def buffered_body(self) -> str:
        """Current NDJSON buffer content (not yet flushed)."""
        with self._lock:
            return self._buffer.body

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # --------------- public API

    def initialize(self, config: Union[None, Mapping[str, Any], EmitterConfig]) -> bool:
        """Enable the emitter if ``config`` carries a usable endpoint URL.

        Never raises and performs no network I/O. An instance that has already
        been enabled (or disabled by a failure) ignores further calls.
        """
        if self._guard.state is not EmitterState.DISABLED_BY_CONFIG:
            logger.debug(f"Emitter {self.name} already initialized ({self.state.value}); ignoring")
            return self.enabled

        cfg = config if isinstance(config, EmitterConfig) else EmitterConfig.from_options(config)
        if cfg is None:
            logger.debug(f"Emitter {self.name} is disabled: endpoint url missing or invalid")
            return False

        self._config = cfg
        self._buffer.prefix = cfg.index_prefix
        self._buffer.last_flush = self._clock()
        if self._transport is None:
            self._transport = HttpxBulkTransport()
        self._guard.enable()
        logger.debug(f"Emitter {self.name} enabled: bulk url {cfg.bulk_url}, prefix {cfg.index_prefix!r}")
        return True

    def process_record(self, record: MutableMapping[str, Any]) -> None:
        """Preprocess and buffer one record; flushes when the size threshold is hit."""
        if not self.enabled:
            return
        try:
            preprocess_record(record)
        except Exception as exc:
            logger.debug(f"Emitter {self.name} dropped record: preprocessing failed: {exc}")
            return

        with self._lock:
            try:
                count = self._buffer.append(record)
            except Exception as exc:
                logger.debug(
                    f"Emitter {self.name} dropped record id={record.get(ID_KEY)!r}: "
                    f"{type(exc).__name__}: {exc}"
                )
                return
            RECORDS_TOTAL.labels(self.name).inc()
            if count >= self._policy.max_records:
                self._flush_locked("size", self._clock())

    def tick(self, now_ms: Optional[float] = None) -> bool:
        """Flush if records are buffered and the flush interval has elapsed.

        Returns True when a send was scheduled.
        """
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            if self._buffer.count > 0 and now - self._buffer.last_flush >= self._policy.max_interval_ms:
                return self._flush_locked("time", now)
        return False

    def flush(self, now_ms: Optional[float] = None) -> bool:
        """Schedule a send of everything buffered. Returns True when a send was scheduled."""
        now = self._clock() if now_ms is None else now_ms
        with self._lock:
            return self._flush_locked("manual", now)

    async def join(self) -> None:
        """Wait for all in-flight sends to complete."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self, flush: bool = False) -> None:
        """Wait for in-flight sends and release the transport.

        With ``flush=True`` whatever is still buffered is sent first.
        """
        if flush:
            with self._lock:
                self._flush_locked("close", self._clock())
        await self.join()
        if self._owns_transport and self._transport is not None:
            # the httpx client is recreated lazily if the emitter is used again
            await self._transport.aclose()

    def health(self) -> EmitterHealth:
        return EmitterHealth(
            name=self.name,
            state=self.state.value,
            buffered=self._buffer.count,
            last_flush=self._buffer.last_flush,
            in_flight=len(self._tasks),
            flushes=self._flushes,
            records_sent=self._records_sent,
            status_errors=self._status_errors,
            transport_errors=self._transport_errors,
            last_error=self._last_error,
        )

    # --------------- internals

    def _flush_locked(self, trigger: str, now: float) -> bool:
        if not self.enabled:
            return False
        # stamped before the send so a slow sink does not cause immediate re-triggering
        self._buffer.last_flush = now
        snap = self._buffer.drain()
        if snap.count == 0:
            return False
        self._flushes += 1
        FLUSHES_TOTAL.labels(self.name, trigger).inc()
        logger.debug(f"Emitter {self.name} flushing {snap.count} records ({trigger})")
        return self._schedule(snap)

    def _schedule(self, snap: BulkSnapshot) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            self._track(loop.create_task(self._send(snap)))
            return True

        target = self._loop
        if target is not None and not target.is_closed():
            target.call_soon_threadsafe(lambda: self._track(target.create_task(self._send(snap))))
            return True

        logger.warning(f"Emitter {self.name} has no event loop; dropped {snap.count} records")
        return False

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, snap: BulkSnapshot) -> None:
        cfg = self._config
        transport = self._transport
        if cfg is None or transport is None:
            logger.warning(f"Emitter {self.name} has no transport; dropped {snap.count} records")
            SENDS_TOTAL.labels(self.name, "dropped").inc()
            await self._notify(FlushOutcome(outcome="dropped", records=snap.count, error="no transport"))
            return

        t0 = time.perf_counter()
        try:
            resp = await transport.post_bulk(cfg.bulk_url, snap.body, cfg.auth)
        except Exception as exc:
            err = map_transport_error(exc)
            latency = (time.perf_counter() - t0) * 1000.0
            logger.debug(f"Indexing error: {err}")
            self._transport_errors += 1
            self._last_error = str(err)
            self._guard.trip(str(err))
            outcome = FlushOutcome(
                outcome="transport_error", records=snap.count, error=str(err), latency_ms=latency
            )
        else:
            latency = (time.perf_counter() - t0) * 1000.0
            if resp.ok:
                self._records_sent += snap.count
                outcome = FlushOutcome(
                    outcome="success", records=snap.count, status_code=resp.status_code, latency_ms=latency
                )
            else:
                err = ResponseStatusError(resp.status_code, resp.text)
                logger.debug(f"Indexing error: {err}")
                self._status_errors += 1
                self._last_error = str(err)
                outcome = FlushOutcome(
                    outcome="status_error",
                    records=snap.count,
                    status_code=resp.status_code,
                    error=resp.text[:200] or None,
                    latency_ms=latency,
                )

        SENDS_TOTAL.labels(self.name, outcome.outcome).inc()
        SEND_LATENCY_MS.labels(self.name).observe(outcome.latency_ms)
        await self._notify(outcome)

    async def _notify(self, outcome: FlushOutcome) -> None:
        if self._on_complete is None:
            return
        try:
            result = self._on_complete(outcome)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.debug(f"Completion handler error (ignored): {type(exc).__name__}: {exc}")
