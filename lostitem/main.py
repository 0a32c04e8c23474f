import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .comments import COMMENT_STORE_KEY
from .config import Settings, load_settings
from .feedback import FEEDBACK_STORE_KEY
from .logging_config import setup_logging
from .mapping_cache import MappingCache
from .notify import FormNotifier
from .reading import ContextSlot
from .routes.booking_routes import router as booking_router
from .routes.comments_routes import router as comments_router
from .routes.divination_routes import router as divination_router
from .sources import build_source
from .storage import RecordStore

log = logging.getLogger("lostitem.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(app.state.settings)
    # warm the mapping so the first divination does not wait on the network
    preload = asyncio.create_task(app.state.mapping_cache.preload())
    yield
    if not preload.done():
        preload.cancel()


def create_app(
    settings: Optional[Settings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(title="Lost Item Tarot", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.mapping_cache = MappingCache(build_source(settings, transport=transport))
    app.state.context_slot = ContextSlot()
    app.state.feedback_store = RecordStore(settings.storage_dir, FEEDBACK_STORE_KEY)
    app.state.comment_store = RecordStore(settings.storage_dir, COMMENT_STORE_KEY)
    app.state.notifier = FormNotifier(
        settings.feedback_form_url,
        settings.feedback_fields,
        timeout=settings.http_timeout,
        transport=transport,
    )
    app.state.booking_notifier = FormNotifier(
        settings.booking_form_url,
        settings.booking_fields,
        timeout=settings.http_timeout,
        transport=transport,
    )

    app.include_router(divination_router)
    app.include_router(comments_router)
    app.include_router(booking_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    log.info("app created, mapping source=%s", settings.mapping_source)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(create_app(load_settings()), host="0.0.0.0", port=8000, log_config=None)
