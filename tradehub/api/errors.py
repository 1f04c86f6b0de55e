"""Map domain exceptions to HTTP error responses"""

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tradehub.domain.exceptions import (
    AccountNotFoundError,
    AgentNotFoundError,
    BalanceUpdateError,
    CardNotFoundError,
    DocumentNotFoundError,
    DomainException,
    EventDeliveryError,
    InsufficientFundsError,
    InvalidOperationError,
    InvalidVerificationCodeError,
    KYCRequiredError,
    RecipientNotFoundError,
    SubmissionNotFoundError,
    TransactionNotFoundError,
    VerificationCodeExpiredError,
)

STATUS_BY_EXCEPTION: Dict[Type[DomainException], int] = {
    AccountNotFoundError: 404,
    AgentNotFoundError: 404,
    CardNotFoundError: 404,
    DocumentNotFoundError: 404,
    RecipientNotFoundError: 404,
    SubmissionNotFoundError: 404,
    TransactionNotFoundError: 404,
    BalanceUpdateError: 409,
    InsufficientFundsError: 422,
    InvalidOperationError: 422,
    InvalidVerificationCodeError: 400,
    VerificationCodeExpiredError: 410,
    KYCRequiredError: 403,
    EventDeliveryError: 503,
}


def status_for(exc: DomainException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_BY_EXCEPTION:
            return STATUS_BY_EXCEPTION[exc_type]
    return 400


def register_error_handlers(app: FastAPI) -> None:
    """Translate any DomainException escaping a route into a JSON error"""

    @app.exception_handler(DomainException)
    async def handle_domain_exception(request: Request, exc: DomainException) -> JSONResponse:
        status_code = status_for(exc)
        logging.warning(
            f"{type(exc).__name__}: {exc}",
            extra={
                "request_id": getattr(request.state, "request_id", "unknown"),
                "path": request.url.path,
                "status": status_code,
            },
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
