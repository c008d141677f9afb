"""
Checkout Backend - FastAPI Application

Single-product checkout: catalog, transaction creation, card payment through
the payment gateway, and checkout recovery.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .config import settings
from .exceptions import CheckoutError
from .db.init_db import AsyncSessionLocal, initialize_database
from .db.seed import seed_products
from .gateway import close_payment_gateway, get_payment_gateway
from .api.products import router as products_router
from .api.transactions import router as transactions_router


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Startup: create tables, seed the demo catalog, build the payment gateway
    - Shutdown: close the gateway's HTTP client
    """
    logger.info("Starting checkout backend server...")
    logger.info(f"Payment gateway mode: {settings.gateway_mode}")

    try:
        await initialize_database()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    if settings.seed_products:
        async with AsyncSessionLocal() as session:
            await seed_products(session)

    get_payment_gateway()
    logger.info("Server startup complete")

    yield

    logger.info("Shutting down checkout backend server...")
    await close_payment_gateway()


# Initialize FastAPI application
app = FastAPI(
    title="Checkout API",
    description="Single-product checkout with card payments",
    version=VERSION,
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    """
    Handle business failures with the standard error body.

    Status code comes from the exception class (404 for missing records,
    400 otherwise).
    """
    logger.warning(
        f"Checkout error: {exc.error_code} - {exc.message}",
        extra={"details": exc.details}
    )

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """
    Handle validation errors with user-friendly messages.

    Used for input validation failures not caught by request schemas,
    e.g. malformed card data or entity rules.
    """
    logger.warning(f"Validation error: {str(exc)}")

    return JSONResponse(
        status_code=400,
        content={
            "error_code": "validation_error",
            "message": str(exc),
            "details": {}
        }
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unexpected errors.

    Logs full exception for debugging but returns generic message to client.
    """
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error_code": "internal_error",
            "message": "An unexpected error occurred",
            "details": {"error_type": type(exc).__name__} if settings.debug else {}
        }
    )


@app.get("/api/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        Server status and version information
    """
    return {
        "status": "healthy",
        "version": VERSION,
        "gateway_mode": settings.gateway_mode,
    }


app.include_router(products_router, prefix="/api/products", tags=["Products"])
app.include_router(transactions_router, prefix="/api/transactions", tags=["Transactions"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "checkout.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
