import os
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from .config import settings
from .db import Base, engine, get_db
from .errors import ChecklistError
from .logging import setup_logging, RequestIdMiddleware
from .auth.router import router as auth_router
from .routes.checklist import router as checklist_router
from .routes.forklifts import router as forklifts_router
from .routes.questions import router as questions_router
from .routes.drivers import router as drivers_router
from .routes.submissions import router as submissions_router
from .routes.notifications import router as notifications_router
from .routes.maintenance import router as maintenance_router
from .routes.admin import router as admin_router
from .models import models  # noqa: F401  registers tables on Base.metadata


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(ChecklistError)
    async def _checklist_error(request: Request, exc: ChecklistError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    # Routers
    app.include_router(auth_router)
    app.include_router(checklist_router)
    app.include_router(forklifts_router)
    app.include_router(questions_router)
    app.include_router(drivers_router)
    app.include_router(submissions_router)
    app.include_router(notifications_router)
    app.include_router(maintenance_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            structlog.get_logger().error("health_check_failed", error=str(e))
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ok"}

    # Metrics
    if settings.enable_metrics:
        Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
            structlog.get_logger().info("tables_verified", tables=len(Base.metadata.tables))

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run("forkcheck.main:app", host=settings.host, port=settings.port)
