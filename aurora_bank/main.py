"""
Aurora Bank FastAPI application.

This is the entry point for the application.
All routers and error handlers are registered here.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from aurora_bank.config import get_settings
from aurora_bank.errors import (
    BankingError,
    banking_error_handler,
    http_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from aurora_bank.logging_config import configure_logging
from aurora_bank.observability import RequestLoggingMiddleware
from aurora_bank.api.health import router as health_router
from aurora_bank.api.accounts import router as accounts_router
from aurora_bank.api.transactions import router as transactions_router
from aurora_bank.api.ledger import router as ledger_router
from aurora_bank.api.analytics import router as analytics_router
from aurora_bank.api.loans import router as loans_router

settings = get_settings()
configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    description="Online banking API with an atomic ledger transaction engine",
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register error handlers
app.add_exception_handler(BankingError, banking_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(ledger_router)
app.include_router(analytics_router)
app.include_router(loans_router)
