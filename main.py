"""
Visitor Check-in - Backend API
FastAPI + SQLModel, face recognition registry for kiosk check-in/out
"""
from dotenv import load_dotenv
load_dotenv()  # Load .env before any other imports

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1 import visits
from config import settings
from domain.errors import Internal, InvalidInput, VisitError
from domain.visit_orchestrator import VisitOrchestrator
from infrastructure.biometrics import RegistrationWorker, get_biometric_client
from infrastructure.database import (
    VisitStore,
    VisitorStore,
    dispose_engine,
    get_session_maker,
    init_db,
)

# Setup structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if settings.log_json else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(settings.log_level.upper())
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("visitor_service_starting", service=settings.service_name)

    await init_db()

    session_maker = get_session_maker()
    visitor_store = VisitorStore(session_maker)
    gateway = get_biometric_client()

    registrar = RegistrationWorker(
        gateway=gateway,
        visitors=visitor_store,
        max_queue_size=settings.registration_queue_size,
        timeout=settings.biometric_timeout_seconds * 2,
    )
    await registrar.start()

    app.state.gateway = gateway
    app.state.registrar = registrar
    app.state.orchestrator = VisitOrchestrator(
        visits=VisitStore(session_maker),
        visitors=visitor_store,
        gateway=gateway,
        registrar=registrar,
        match_timeout=settings.biometric_timeout_seconds,
    )

    yield

    logger.info("visitor_service_stopping")
    await registrar.stop()
    await dispose_engine()


app = FastAPI(
    title="Visitor Check-in API",
    description="Visit approval workflow and biometric check-in/out",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(VisitError)
async def visit_error_handler(request: Request, exc: VisitError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=InvalidInput.status_code,
        content={"detail": errors or InvalidInput.default_message, "code": InvalidInput.code},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    error = Internal()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "code": error.code},
    )


# Routers
app.include_router(visits.router, prefix="/api/v1/visits", tags=["visits"])


@app.get("/health")
async def health_check():
    """Healthy as long as the API runs; registry reachability is informational"""
    gateway = getattr(app.state, "gateway", None)
    biometric = "unknown"
    if gateway is not None:
        biometric = "connected" if await gateway.check_connection() else "disconnected"

    return {"status": "healthy", "service": settings.service_name, "biometric": biometric}


@app.get("/")
async def root():
    return {"message": "Visitor Check-in API", "docs": "/docs"}
