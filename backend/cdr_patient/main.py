"""
CDR Patient Registry API
Patient identity, identifiers and care-program enrollment for the clinical data repository.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.config import settings
from .core.errors import register_error_handlers
from .core.audit_middleware import AuditMiddleware
from .models import Base
from .models.base import engine
from .api import patients, programs, identifier_types, configs

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # NOTE: In production, use Alembic migrations instead of create_all()
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured on %s", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(
    title="CDR Patient Registry API",
    description=(
        "Patient identifiers, program enrollment and voiding with a mandatory "
        "audit trail. Demographics are owned by the demographic service."
    ),
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(AuditMiddleware)

register_error_handlers(app)

app.include_router(patients.router, prefix=settings.API_PREFIX)
app.include_router(programs.router, prefix=settings.API_PREFIX)
app.include_router(identifier_types.router, prefix=settings.API_PREFIX)
app.include_router(configs.router, prefix=settings.API_PREFIX)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": settings.APP_NAME, "version": settings.VERSION}
