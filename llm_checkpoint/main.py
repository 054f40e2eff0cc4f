import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from llm_checkpoint.apps.api import router
from llm_checkpoint.config.settings import configure_logging, get_settings
from llm_checkpoint.services import create_services_from_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)

    services = create_services_from_settings(settings)
    app.state.services = services

    stop_event = asyncio.Event()
    queue_task = asyncio.create_task(services.lifecycle_manager.process_queue())
    reconcile_task = None
    if settings.COMMIT_POLL_INTERVAL > 0:
        reconcile_task = asyncio.create_task(
            services.reconciler.run(settings.COMMIT_POLL_INTERVAL, stop_event)
        )
    else:
        logger.info("Commit polling disabled; use /api/checkpoint/reconcile")

    try:
        yield
    finally:
        stop_event.set()
        queue_task.cancel()
        pending = [queue_task] + ([reconcile_task] if reconcile_task else [])
        await asyncio.gather(*pending, return_exceptions=True)
        services.close()


app = FastAPI(
    title="LLM Checkpoint API",
    version="0.1.0",
    description="Automatic file snapshot history reconciled against git commits",
    lifespan=lifespan,
)

app.include_router(router.router, prefix="/api")


@app.get("/health")
async def health_check():
    """
    Simple health check endpoint to confirm the API is running.
    """
    return {"status": "ok"}
