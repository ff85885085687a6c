"""
FastAPI application: budgets API + health/readiness probes
"""
import logging
import traceback

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.config import get_settings
from app.infrastructure.db.session import check_db_connection
from app.api.v1 import budgets

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Необработанное исключение в route -> traceback в лог и 500"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error("Unhandled error on %s %s\n%s", request.method, request.url.path, traceback.format_exc())
            return PlainTextResponse("Internal Server Error", status_code=500)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="FinLife Budgets", debug=settings.DEBUG)

    app.add_middleware(ErrorLoggingMiddleware)
    # user_id в session кладёт внешний auth-провайдер
    app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)

    app.include_router(budgets.router)

    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """503 пока БД недоступна"""
        try:
            check_db_connection(settings)
        except Exception as exc:
            logger.warning("Readiness check failed: %s", exc)
            return PlainTextResponse("database unavailable", status_code=503)
        return "ok"

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="127.0.0.1", port=8000, reload=get_settings().DEBUG)
