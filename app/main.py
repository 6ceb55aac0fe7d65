from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.approvals.router import router as approvals_router
from app.api.v1.audit.router import router as audit_router
from app.api.v1.fee_plans.router import router as fee_plans_router
from app.api.v1.invoices.router import router as invoices_router
from app.api.v1.payments.router import router as payments_router
from app.api.v1.refunds.router import router as refunds_router
from app.api.v1.student_accounts.router import router as student_accounts_router
from app.core.config import settings
from app.core.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Centre Ledger")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(fee_plans_router)
    app.include_router(invoices_router)
    app.include_router(payments_router)
    app.include_router(refunds_router)
    app.include_router(approvals_router)
    app.include_router(student_accounts_router)
    app.include_router(audit_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok", "environment": settings.environment}

    logger.info("app_created", environment=settings.environment)
    return app


app = create_app()
