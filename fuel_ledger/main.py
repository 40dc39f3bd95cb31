"""FastAPI application entry point."""
from fastapi import FastAPI

from fuel_ledger.logging_config import configure_logging
from fuel_ledger.routers import health, ledger


configure_logging()

app = FastAPI(title="Fuel Ledger API")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(ledger.router)
