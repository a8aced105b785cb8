import logging

from fastapi import FastAPI

from app.core.config import settings
from app.routers import me, malls, businesses, bookings, messages

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
)

app = FastAPI(
    title=settings.project_name,
    version="1.0.0",
)

# Include routers
app.include_router(me.router, prefix=settings.api_v1_prefix)
app.include_router(malls.router, prefix=settings.api_v1_prefix)
app.include_router(businesses.router, prefix=settings.api_v1_prefix)
app.include_router(bookings.router, prefix=settings.api_v1_prefix)
app.include_router(messages.router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Welcome to MallBook API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
