"""Main FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sirrs.config import settings
from sirrs.database import engine, Base
from sirrs.api.routes import router
# Import models to register them with SQLAlchemy Base
from sirrs.models.domain import User, Incident
from sirrs.models.timeline import TimelineEntry

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="SIRRS - Incident Reporting and Resolution",
    description="Citizens report municipal incidents; authorities triage and resolve them.",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api", tags=["Incidents"])


# Health check
@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "SIRRS"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
