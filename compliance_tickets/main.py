import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from compliance_tickets.api.routes import router
from compliance_tickets.core.errors import (
    AppError,
    ExternalServiceError,
    InvalidTicketType,
    NotFoundError,
    RepositoryError,
    TicketRuleError,
    ValidationError,
)
from compliance_tickets.core.log_config import setup_logging

load_dotenv()
logger = logging.getLogger(__name__)

# Looked up along the exception's MRO, so subclasses inherit their parent's status.
_ERROR_STATUS: dict[type[Exception], int] = {
    InvalidTicketType: status.HTTP_400_BAD_REQUEST,
    TicketRuleError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    RepositoryError: status.HTTP_502_BAD_GATEWAY,
    ExternalServiceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(exc: Exception) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in _ERROR_STATUS:
            return _ERROR_STATUS[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _register_exception_handlers(app: FastAPI) -> None:
    def handler(request: Request, exc: Exception) -> JSONResponse:
        kind = exc.kind if isinstance(exc, AppError) else type(exc).__name__
        return JSONResponse(status_code=_status_for(exc), content={"detail": str(exc), "kind": kind})

    for exc_type in _ERROR_STATUS:
        app.add_exception_handler(exc_type, handler)

    def unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error", exc_info=exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})

    app.add_exception_handler(Exception, unhandled_handler)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Compliance Tickets API", version="1.0.0")
    _register_exception_handlers(app)

    app.include_router(router)

    return app


app = create_app()
