"""
Main FastAPI application - StockLedger point-in-time reporting service.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockledger.api.routers import reports
from stockledger.core.logging import configure_logging
from stockledger.infrastructure.database import init_db

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    configure_logging()
    init_db()
    logger.info("application_started")
    yield


app = FastAPI(
    title="StockLedger Reports API",
    description="""
## Point-in-time ledger reconstruction and financial statements

### Reports:
- **Account balances and statements** as of any date
- **Balance Sheet** with reconciliation check
- **Income Statement** with cost of goods sold and expense breakdown
- **VAT declaration and VAT statement**
- **Inventory valuation**

### Principles:
- Balances are always derived from transactions, never stored
- Reporting never writes to the database
- Data-quality problems are returned as warnings, not errors
    """,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reports.router)


@app.get("/")
def root():
    return {
        "name": "StockLedger Reports API",
        "version": "0.1.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    logger.info("request_rejected", path=request.url.path, detail=str(exc))
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
