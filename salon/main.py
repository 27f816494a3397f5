from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI

from salon.api import booking, staff
from salon.core.config import settings
from salon.core.config_loader import load_company_config
from salon.core.exceptions import register_exception_handlers
from salon.core.logger import setup_logging, logger
from salon.database import SessionLocal, init_db
from salon.services.seed_service import seed_defaults

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting salon booking backend")
    init_db()
    db = SessionLocal()
    try:
        seed_defaults(db, load_company_config())
    finally:
        db.close()
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

register_exception_handlers(app)

# Include routers
app.include_router(booking.router, tags=["Booking"])
app.include_router(staff.router, tags=["Staff"])


@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}


@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("salon.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
