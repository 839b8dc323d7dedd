"""
Error taxonomy for the transactions API and its HTTP mapping.

Every failure an operation can produce ends up as one of three responses:
401 for authorization failures, 400 for client input failures and 500 for
backend/integration failures.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized"


class TransactionsError(Exception):
    """Base class for errors rendered as structured API responses."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(TransactionsError):
    status_code = 401

    def __init__(self, message: str = UNAUTHORIZED_MESSAGE):
        super().__init__(message)


class ClientInputError(TransactionsError):
    status_code = 400


class BackendError(TransactionsError):
    status_code = 500


class CredentialsError(BackendError):
    """Service-account material is missing or cannot be decoded."""


@contextmanager
def backend_errors(operation: str) -> Iterator[None]:
    """
    Convert anything raised by the store or identity service into BackendError.

    Errors already in the taxonomy pass through untouched.
    """
    try:
        yield
    except TransactionsError:
        raise
    except Exception as exc:
        logger.exception("%s failed: %s", operation, exc)
        raise BackendError(str(exc) or exc.__class__.__name__) from exc


def _error_response(exc: TransactionsError) -> JSONResponse:
    if isinstance(exc, AuthorizationError):
        # Never echo verification details back to the caller.
        return JSONResponse(
            status_code=exc.status_code, content={"error": UNAUTHORIZED_MESSAGE}
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def transactions_error_handler(
    request: Request, exc: TransactionsError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TransactionsError, transactions_error_handler)
