import logging
from fastapi import FastAPI
from booking_automation.config import settings
from booking_automation.database import init_db
from booking_automation.api import routes
from booking_automation.services.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce noise from HTTP client libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("twilio").setLevel(logging.WARNING)

# Initialize database
init_db()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# Include routers
app.include_router(routes.router)


@app.on_event("startup")
async def startup_event():
    """Start background scheduler on app startup"""
    if settings.scheduler_enabled:
        start_scheduler()
    logger.info("%s started", settings.app_name)


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background scheduler on app shutdown"""
    if settings.scheduler_enabled:
        stop_scheduler()
    logger.info("%s stopped", settings.app_name)


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
