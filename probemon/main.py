import logging
import threading
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from probemon import scheduler
from probemon.api_schemas import HealthResponse, TargetResponse, TargetStatusResponse
from probemon.checks.http_check import HttpProber
from probemon.config import settings
from probemon.models import Target
from probemon.registry import build_targets, load_registry
from probemon.sink import MetricsSink
from probemon.stream import ResultStream

logger = logging.getLogger(__name__)

sink = MetricsSink()
targets: list[Target] = []


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    global targets
    configure_logging()

    targets = build_targets(load_registry())
    prober = HttpProber(timeout_s=settings.PROBE_TIMEOUT_SECONDS)
    results = ResultStream()
    cancel = threading.Event()

    supervisor = scheduler.start(cancel, prober, targets, results)
    consumer = threading.Thread(
        target=sink.consume, args=(results,), name="probe-sink", daemon=True
    )
    consumer.start()
    try:
        yield
    finally:
        logger.info("Shutting down probe scheduler")
        cancel.set()
        supervisor.join(timeout=settings.PROBE_TIMEOUT_SECONDS + 1)
        consumer.join(timeout=1)
        prober.close()


app = FastAPI(
    title="Probe Monitor",
    version="1.0.0",
    description=(
        "Probes a fixed set of HTTP endpoints from targets.yml, each on its own "
        "interval, and exports liveness and latency as prometheus metrics."
    ),
    lifespan=lifespan,
)
app.mount("/metrics", make_asgi_app())


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by probes and orchestration.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/api/targets",
    response_model=list[TargetResponse],
    tags=["targets"],
    summary="Configured Targets",
    description="Targets loaded at startup, in configuration order.",
)
def list_targets():
    return [{"name": t.name, "url": t.url, "interval_s": t.interval_s} for t in targets]


@app.get(
    "/api/status",
    response_model=dict[str, TargetStatusResponse],
    tags=["status"],
    summary="Latest Probe Results",
    description="Most recent result per target; targets not yet probed are absent.",
)
def status():
    return sink.snapshot()


def run() -> None:
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
