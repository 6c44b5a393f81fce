import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from orderdesk.api import auth, notifications, orders, pages
from orderdesk.context import AppContext
from orderdesk.core.config import Settings, settings as default_settings
from orderdesk.db.supabase import ClientFactory, client_factory

STATIC_DIR = Path(__file__).parent / "static"


def create_app(settings: Optional[Settings] = None, factory: Optional[ClientFactory] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = AppContext(settings, factory or client_factory(settings))
        app.state.ctx = ctx
        await ctx.start()
        try:
            yield
        finally:
            await ctx.close()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(pages.router)
    app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
    app.include_router(notifications.router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # service worker has to be served from the root to control every page
    @app.get("/sw.js", include_in_schema=False)
    def service_worker():
        return FileResponse(STATIC_DIR / "sw.js", media_type="application/javascript")

    @app.get("/health")
    def health():
        return {"status": "ok", "app": settings.APP_NAME}

    return app


app = create_app()
