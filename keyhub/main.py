import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings
from .core.errors import register_exception_handlers
from .core.security import AuthGate
from .core.storage import JsonDocumentStore
from .routers.auth import router as auth_router
from .routers.keys import router as keys_router
from .routers.software import router as software_router
from .services.credential_store import CredentialStore
from .services.key_ledger import KeyLedger
from .services.software_catalog import SoftwareCatalog

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Serve with ``uvicorn --factory keyhub.main:create_app``."""
    settings = settings or Settings()
    app = FastAPI(title=settings.APP_NAME)

    # Configure CORS
    raw_origins = settings.CORS_ORIGINS or "*"
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    allow_credentials = False if "*" in origins else True
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prepare storage and seed the admin account
    storage = JsonDocumentStore(settings.DATA_DIR)
    storage.initialize()
    credential_store = CredentialStore(storage, settings)
    credential_store.bootstrap()
    ledger = KeyLedger(storage, settings)

    app.state.settings = settings
    app.state.storage = storage
    app.state.auth_gate = AuthGate(settings)
    app.state.credential_store = credential_store
    app.state.ledger = ledger
    app.state.catalog = SoftwareCatalog(storage, ledger)

    register_exception_handlers(app)

    # Routers
    app.include_router(auth_router, prefix=settings.BASE_PATH)
    app.include_router(software_router, prefix=settings.BASE_PATH)
    app.include_router(keys_router, prefix=settings.BASE_PATH)

    @app.get("/")
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    logger.info(f"{settings.APP_NAME} ready, data in {settings.DATA_DIR}")
    return app

