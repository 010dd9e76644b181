"""
Demo: shipping RRRs to a mock bulk endpoint.

Starts a local aiohttp server that accepts ``POST /api/default/_bulk``, feeds
it 120 records through an emitter driven by a Ticker, then stops the server
and shows that the next flush disables the emitter for good.

Requires:
- aiohttp installed (pip install aiohttp)
"""

import asyncio
import json
import uuid
from datetime import datetime, timezone

from aiohttp import web
from loguru import logger

from rrr_emitter import FlushOutcome, RRREmitter, Ticker

HOST, PORT = "localhost", 8766
ENDPOINT = f"http://{HOST}:{PORT}/api/default"

received_lines: list[str] = []


async def bulk_handler(request):
    """Mock bulk endpoint: count NDJSON lines and answer like a log store."""
    body = await request.text()
    lines = body.splitlines()
    received_lines.extend(lines)
    metas = [json.loads(line) for line in lines[0::2]]
    indices = sorted({m["index"]["_index"] for m in metas})
    logger.info(f"📥 bulk: {len(metas)} docs -> {', '.join(indices)}")
    return web.json_response({"errors": False, "items": len(metas)})


async def run_mock_server():
    app = web.Application()
    app.router.add_post("/api/default/_bulk", bulk_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, HOST, PORT)
    await site.start()
    logger.info(f"🌐 Mock bulk endpoint at {ENDPOINT}/_bulk")
    return runner


def make_rrr(i: int) -> dict:
    return {
        "@timestamp": datetime.now(timezone.utc).isoformat(),
        "id": str(uuid.uuid4()),
        "http": {"request": {"method": "GET", "url": f"/v2/mockapi?seq={i}"}},
        "responsetime": 5 + i % 7,
        "attrs": {"seq": i, "cached": i % 2 == 0},
        "attrsint": {"payloadsize": str(100 + i)},
    }


async def main():
    server = await run_mock_server()

    def on_complete(outcome: FlushOutcome):
        logger.info(f"   send {outcome.outcome}: {outcome.records} records in {outcome.latency_ms:.1f}ms")

    emitter = RRREmitter("demo", on_complete=on_complete)
    emitter.initialize({"endpointUrl": ENDPOINT, "indexPrefix": "demo-"})

    try:
        async with Ticker(emitter, interval=0.2):
            logger.info("Phase 1: 120 records (two size flushes, one time flush)")
            for i in range(120):
                emitter.process_record(make_rrr(i))
                await asyncio.sleep(0.001)
            await asyncio.sleep(1.5)
            await emitter.join()
    finally:
        await server.cleanup()
        logger.info("🛑 Mock server stopped")

    logger.info("Phase 2: sink gone, next flush trips the failure guard")
    emitter.process_record(make_rrr(999))
    emitter.flush()
    await emitter.join()

    h = emitter.health()
    logger.info(f"Received {len(received_lines) // 2} docs; emitter state={h.state}, last_error={h.last_error}")
    emitter.process_record(make_rrr(1000))
    logger.info(f"Buffered after trip: {emitter.count}")
    await emitter.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("⚠️  Interrupted")
