# complaintdesk/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from complaintdesk.api.routes import admin, complaints, health
from complaintdesk.core.config import settings
from complaintdesk.core.exceptions import ComplaintNotFound, InvalidScopeUser, StatusTransitionDenied
from complaintdesk.core.logging import setup_logging, RequestIdMiddleware, log_extra

setup_logging(settings.log_level)
log = logging.getLogger(__name__)

app = FastAPI(
    title="ComplaintDesk",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url=None,
    openapi_url="/api/openapi.json",
)

# ==== Middlewares ====
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestIdMiddleware)


# ==== Доменні помилки -> HTTP ====

@app.exception_handler(StatusTransitionDenied)
async def status_transition_denied(request: Request, exc: StatusTransitionDenied):
    log.info("status_transition_denied", extra={**log_extra(request), **exc.details})
    return JSONResponse(
        status_code=409,
        content={"detail": exc.message, "code": exc.error_code, "allowed": list(exc.allowed)},
    )


@app.exception_handler(ComplaintNotFound)
async def complaint_not_found(request: Request, exc: ComplaintNotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(InvalidScopeUser)
async def invalid_scope_user(request: Request, exc: InvalidScopeUser):
    # помилка програміста: не показуємо деталі клієнту
    log.error("invalid_scope_user: %s", exc.message, extra=log_extra(request))
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


# ==== API під /api ====
app.include_router(health.router,     prefix="/api",            tags=["health"])
app.include_router(complaints.router, prefix="/api/complaints", tags=["complaints"])
app.include_router(admin.router,      prefix="/api/admin",      tags=["admin"])
