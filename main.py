from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.errors import register_error_handlers
from app.core.middleware import FirmMiddleware
from app.core.settings import Settings, get_settings
from app.db.session import Database

from services.banking.api import router as banking_router
from services.documents.api import router as documents_router
from services.firms.api import router as firms_router
from services.firms.shares import router as shares_router
from services.items.api import router as items_router
from services.parties.api import router as parties_router
from services.payments.api import router as payments_router
from services.sync.api import router as sync_router


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    database: Database | None = None,
    settings: Settings | None = None,
    *,
    replica_transport=None,
) -> FastAPI:
    """Build the application.

    ``database`` defaults to one built from ``DATABASE_URL`` and is owned by the
    app (disposed at shutdown). ``replica_transport`` is handed to every httpx
    client talking to the remote replica.
    """
    settings = settings or get_settings()
    owns_database = database is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = app.state.database
        # Dev-friendly schema creation (alembic/ holds the managed migration)
        db.create_all()

        dispatcher = None
        if settings.cloud_url:
            from app.events.dispatcher import run_dispatcher_forever

            dispatcher = asyncio.create_task(run_dispatcher_forever(db, settings, transport=replica_transport))
        try:
            yield
        finally:
            if dispatcher is not None:
                dispatcher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await dispatcher
            if owns_database:
                db.dispose()

    app = FastAPI(title="Billing Back Office", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url)
    app.state.replica_transport = replica_transport

    app.add_middleware(FirmMiddleware)
    register_error_handlers(app)

    app.include_router(firms_router)
    app.include_router(shares_router)
    app.include_router(items_router)
    app.include_router(parties_router)
    app.include_router(documents_router)
    app.include_router(payments_router)
    app.include_router(banking_router)
    app.include_router(sync_router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


configure_logging(get_settings().log_level)
app = create_app()
