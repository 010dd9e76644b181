"""
Unit tests for size and time flush triggers.
"""

import json

import pytest

from rrr_emitter import FlushPolicy, RRREmitter


@pytest.mark.asyncio
async def test_size_threshold_flushes_on_fiftieth_record(emitter, transport, record):
    for i in range(49):
        emitter.process_record(record(i))
    assert emitter.count == 49
    assert emitter.in_flight == 0

    emitter.process_record(record(49))
    # cleared before the 51st call, without waiting for the send
    assert emitter.count == 0
    assert emitter.buffered_body == ""
    assert emitter.in_flight == 1

    await emitter.join()
    assert len(transport.calls) == 1
    assert len(transport.calls[0]["body"].splitlines()) == 100

    emitter.process_record(record(50))
    assert emitter.count == 1


@pytest.mark.asyncio
async def test_size_flush_stamps_last_flush(emitter, clock, record):
    clock.advance(250)
    for i in range(50):
        emitter.process_record(record(i))
    assert emitter.last_flush == clock.now
    await emitter.join()


@pytest.mark.asyncio
async def test_tick_never_flushes_empty_buffer(emitter, transport, t0):
    assert emitter.tick(t0 + 10_000_000) is False
    await emitter.join()
    assert transport.calls == []


@pytest.mark.asyncio
async def test_tick_waits_for_interval(emitter, transport, record, t0):
    emitter.process_record(record(1))
    assert emitter.tick(t0 + 999) is False
    assert emitter.count == 1

    assert emitter.tick(t0 + 1000) is True
    assert emitter.count == 0
    assert emitter.last_flush == t0 + 1000
    await emitter.join()
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_tick_interval_counts_from_last_flush(emitter, transport, record, t0):
    emitter.process_record(record(1))
    emitter.tick(t0 + 1500)
    emitter.process_record(record(2))
    assert emitter.tick(t0 + 2000) is False
    assert emitter.tick(t0 + 2500) is True
    await emitter.join()
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_tick_uses_injected_clock_when_no_time_given(emitter, clock, record):
    emitter.process_record(record(1))
    assert emitter.tick() is False
    clock.advance(1000)
    assert emitter.tick() is True
    await emitter.join()


@pytest.mark.asyncio
async def test_end_to_end_three_records(fake_transport, clock, record, t0):
    transport = fake_transport()
    em = RRREmitter("e2e", transport=transport, clock=clock)
    em.initialize({"endpointUrl": "http://sink/api"})

    em.process_record(record(1, ts="2023-06-15T10:00:00Z"))
    em.process_record(record(2, ts="2023-06-15T11:00:00Z"))
    em.process_record(record(3, ts="2023-06-15T12:00:00Z"))
    assert em.count == 3

    em.tick(t0 + 500)
    assert em.count == 3

    em.tick(t0 + 1500)
    assert em.count == 0
    await em.join()

    assert len(transport.calls) == 1
    call = transport.calls[0]
    assert call["url"] == "http://sink/api/_bulk"
    lines = call["body"].splitlines()
    assert len(lines) == 6
    docs = [json.loads(line) for line in lines]
    assert [d["index"]["_id"] for d in docs[0::2]] == ["req-1", "req-2", "req-3"]
    assert all(d["index"]["_index"] == "api-2023.06.15" for d in docs[0::2])
    await em.aclose()


@pytest.mark.asyncio
async def test_manual_flush_sends_buffer_and_auth(fake_transport, clock, record):
    transport = fake_transport()
    em = RRREmitter("auth", transport=transport, clock=clock)
    em.initialize({"endpointUrl": "http://sink/api", "username": "u", "password": "p"})
    em.process_record(record(1))

    assert em.flush() is True
    await em.join()
    assert transport.calls[0]["auth"] == ("u", "p")


@pytest.mark.asyncio
async def test_flush_on_empty_buffer_sends_nothing(emitter, transport, clock):
    clock.advance(300)
    assert emitter.flush() is False
    assert emitter.last_flush == clock.now
    await emitter.join()
    assert transport.calls == []


@pytest.mark.asyncio
async def test_custom_policy(fake_transport, clock, record, t0):
    transport = fake_transport()
    em = RRREmitter(
        "policy", transport=transport, clock=clock, policy=FlushPolicy(max_records=2, max_interval_ms=100)
    )
    em.initialize({"endpointUrl": "http://sink"})
    em.process_record(record(1))
    em.process_record(record(2))
    assert em.count == 0
    em.process_record(record(3))
    assert em.tick(t0 + 100) is True
    await em.join()
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_records_appended_during_send_are_kept(emitter, transport, record, t0):
    emitter.process_record(record(1))
    emitter.tick(t0 + 1000)
    emitter.process_record(record(2))
    await emitter.join()
    assert emitter.count == 1
    assert '"_id":"req-2"' in emitter.buffered_body
    assert '"req-2"' not in transport.calls[0]["body"]


def test_flush_without_event_loop_drops_batch(emitter, transport, record):
    emitter.process_record(record(1))
    assert emitter.flush() is False
    assert emitter.count == 0
    assert transport.calls == []


@pytest.mark.asyncio
async def test_posted_body_is_strict_json_for_non_finite_values(emitter, transport, record):
    def reject(token):
        raise ValueError(token)

    emitter.process_record(record(1, attrsint={"x": "1e400"}, responsetime=float("nan")))
    emitter.process_record(record(2, attrsint={"x": float("inf")}))
    emitter.flush()
    await emitter.join()

    docs = [json.loads(line, parse_constant=reject) for line in transport.calls[0]["body"].splitlines()]
    assert docs[1]["attrsint"] == {"x": 0}
    assert docs[1]["responsetime"] is None
    assert docs[3]["attrsint"] == {"x": 0}
