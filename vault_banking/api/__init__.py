"""
Banking API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .users import router as users_router
from .transactions import router as transactions_router
from .loans import router as loans_router
from ..config import get_config
from ..exceptions import BankingError
from ..logging_config import get_logger, log_action, setup_logging
from ..system import BankingSystem


logger = get_logger("vault.api")


def create_app(system: Optional[BankingSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application

    Args:
        system: Banking system to serve. When omitted one is built from the
            environment configuration and closed on shutdown.
    """
    owns_system = system is None
    if owns_system:
        config = get_config()
        setup_logging(config.log_level, config.log_format)
        system = BankingSystem(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_system:
            system.close()

    app = FastAPI(
        title="Vault Banking API",
        description="Accounts, deposits, withdrawals and password resets",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.system = system

    app.add_middleware(
        CORSMiddleware,
        allow_origins=system.config.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BankingError)
    async def banking_error_handler(request: Request, exc: BankingError):
        if exc.status_code >= 500:
            log_action(logger, "error", f"{type(exc).__name__}: {exc.message}",
                       action="request_failed", resource=request.url.path)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log_action(logger, "error", f"Unhandled error: {type(exc).__name__}",
                   action="request_failed", resource=request.url.path,
                   exc_info=(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content={"message": "Server error"})

    app.include_router(users_router, prefix="/users", tags=["Users"])
    app.include_router(transactions_router, prefix="/api", tags=["Transactions"])
    app.include_router(loans_router, prefix="/api/loans", tags=["Loans"])

    @app.get("/")
    async def root():
        """Service information"""
        return {
            "system": "Vault Banking",
            "version": "1.0.0",
            "endpoints": {
                "users": "/users",
                "transactions": "/api",
                "loans": "/api/loans",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "vault_banking_api",
            "version": "1.0.0"
        }

    return app


def run_server(host: str = "0.0.0.0", port: int = 5000, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "vault_banking.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
