"""
Error taxonomy and HTTP error handlers.

Every failure the banking core can report is a BankingError
subclass. Each one carries a stable `kind` that API clients can
switch on, the HTTP status it maps to, and whether the caller may
safely resubmit the same request.

The distinction that matters most is between clean rejections
(nothing happened, the user can fix the input) and a
LedgerWriteFailure (money moved but the ledger row is missing).
The UI must never offer "try again" for the latter.
"""

import logging
from decimal import Decimal
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BankingError(Exception):
    """Base class for all banking errors."""

    kind = "BankingError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
            "details": _jsonable(self.details),
        }


class InvalidAmount(BankingError):
    """Amount is non-numeric, non-positive, too precise or over a limit."""

    kind = "InvalidAmount"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, amount: Any, reason: str = "amount must be a positive number"):
        super().__init__(
            f"Invalid amount {amount!r}: {reason}",
            details={"amount": str(amount), "reason": reason},
        )


class AccountNotFound(BankingError):
    kind = "AccountNotFound"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, account_id: Any):
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} not found",
            details={"account_id": account_id},
        )


class InsufficientFunds(BankingError):
    """Expected business rejection. Nothing was changed."""

    kind = "InsufficientFunds"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, account_id: int, available: Decimal, requested: Decimal):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient funds: available={available}, requested={requested}",
            details={
                "account_id": account_id,
                "available": available,
                "requested": requested,
            },
        )


class IdempotencyConflict(BankingError):
    """An idempotency key was reused for a different operation."""

    kind = "IdempotencyConflict"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, account_id: int, idempotency_key: str):
        super().__init__(
            f"Idempotency key '{idempotency_key}' was already used on "
            f"account {account_id} for a different operation",
            details={"account_id": account_id, "idempotency_key": idempotency_key},
        )


class LockTimeout(BankingError):
    """The account's update lock could not be acquired in time."""

    kind = "LockTimeout"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def __init__(self, account_id: int, timeout: float | None):
        super().__init__(
            f"Timed out after {timeout}s waiting for account {account_id}",
            details={"account_id": account_id, "timeout": timeout},
        )


class StorageError(BankingError):
    """
    The storage layer failed to persist a change.

    When this reaches the caller from an atomic store the whole
    operation was rolled back.
    """

    kind = "StorageError"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class LedgerWriteFailure(BankingError):
    """
    Partial failure: the balance was committed but the ledger
    entry was not written. Needs manual reconciliation.
    """

    kind = "LedgerWriteFailure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False

    def __init__(
        self,
        operation: str,
        account_id: int,
        amount: Decimal,
        balance_after: Decimal,
    ):
        self.operation = operation
        self.account_id = account_id
        self.amount = amount
        self.balance_after = balance_after
        super().__init__(
            f"Your {operation} of {amount} could not be fully recorded. "
            f"Please contact support before trying again.",
            details={
                "operation": operation,
                "account_id": account_id,
                "amount": amount,
            },
        )


class AuthenticationFailed(BankingError):
    kind = "AuthenticationFailed"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


# --- Exception handlers ---

async def banking_error_handler(request: Request, exc: BankingError) -> JSONResponse:
    """Render a BankingError as {kind, message, retryable, details}."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


_HTTP_KINDS = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
}


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Give plain HTTPExceptions the same body shape as banking errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "kind": _HTTP_KINDS.get(exc.status_code, "HTTPError"),
            "message": exc.detail,
            "retryable": False,
            "details": {},
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Map request validation errors onto the banking taxonomy.

    A malformed amount is an InvalidAmount and a malformed account
    id can never match an account, so both are reported the same
    way the engine would report them.
    """
    errors = exc.errors()
    for error in errors:
        loc = error.get("loc", ())
        field = loc[-1] if loc else ""
        missing = error.get("type") == "missing"
        value = None if missing else error.get("input")

        if field == "amount":
            return JSONResponse(
                status_code=InvalidAmount.status_code,
                content=InvalidAmount(
                    value, error.get("msg", "invalid amount")
                ).to_dict(),
            )
        if field == "account_id" and not missing:
            return JSONResponse(
                status_code=AccountNotFound.status_code,
                content=AccountNotFound(_jsonable(value)).to_dict(),
            )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "kind": "ValidationError",
            "message": "Validation error",
            "retryable": False,
            "details": {"errors": _jsonable(_plain_errors(errors))},
        },
    )


def _plain_errors(errors) -> list[dict[str, Any]]:
    # ctx may hold exception instances, which are not serializable
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception on %s %s", request.method, request.url.path
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "kind": "InternalError",
            "message": "An internal server error occurred",
            "retryable": False,
            "details": {},
        },
    )
