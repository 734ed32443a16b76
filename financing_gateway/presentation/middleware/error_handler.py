"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from financing_gateway.domain.exceptions import (
    BillingGatewayException,
    DomainException,
    DuplicateTemplateException,
    GatewayUnavailableException,
    IneligibleException,
    InvalidCustomerException,
    InvalidPlanRequestException,
    InvalidTemplateException,
    InvalidTransitionException,
    InvalidWebhookSignatureException,
    PlanNotFoundException,
    ProfileNotApprovedException,
    ProfileNotFoundException,
    ProfileRevocationBlockedException,
    TemplateNotFoundException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)

# Most specific first; the first matching entry wins
STATUS_BY_EXCEPTION = (
    (PlanNotFoundException, 404),
    (TemplateNotFoundException, 404),
    (ProfileNotFoundException, 404),
    (IneligibleException, 403),
    (InvalidTransitionException, 409),
    (DuplicateTemplateException, 409),
    (ProfileRevocationBlockedException, 409),
    (ProfileNotApprovedException, 409),
    (InvalidPlanRequestException, 400),
    (InvalidTemplateException, 400),
    (InvalidWebhookSignatureException, 400),
    (GatewayUnavailableException, 503),
    (InvalidCustomerException, 422),
    (BillingGatewayException, 502),
)


def status_for(exc: DomainException) -> int:
    """HTTP status for a domain exception."""
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return 400


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exceptions to appropriate HTTP responses.
    """

    @app.exception_handler(GatewayUnavailableException)
    async def gateway_unavailable_handler(
        request: Request,
        exc: GatewayUnavailableException,
    ) -> JSONResponse:
        """Handle billing processor outages."""
        logger.error(
            "billing_gateway_unavailable",
            request_id=get_request_id(),
            operation=exc.operation,
            attempts=exc.attempts,
        )
        return _error_response(
            503,
            exc.code,
            "Billing service temporarily unavailable. Please try again.",
        )

    @app.exception_handler(InvalidWebhookSignatureException)
    async def invalid_signature_handler(
        request: Request,
        exc: InvalidWebhookSignatureException,
    ) -> JSONResponse:
        """Handle webhook deliveries that fail verification."""
        logger.warning(
            "webhook_rejected",
            request_id=get_request_id(),
            message=exc.message,
        )
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle domain exceptions."""
        status_code = status_for(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
            status_code=status_code,
        )
        return _error_response(status_code, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")
