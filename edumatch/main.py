"""
EduMatch Aptitude Service - Main Application

FastAPI backend with:
- MongoDB as the document store (students, colleges, tests, results)
- Aptitude test assignment, grading and application status updates
- JWT verification for student and college callers

Run: uvicorn edumatch.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edumatch.api.routes import api_router
from edumatch.db.mongodb import init_mongo_indexes, test_mongo_connection
from edumatch.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("edumatch")

# Create FastAPI app
app = FastAPI(
    title="EduMatch Aptitude Service",
    description="""
    Aptitude testing core of the student/college matching portal.

    ## Features
    - **Pending tests**: tests a student owes for approved applications
    - **Grading**: single/multiple choice scoring, 60% pass mark
    - **Reconciliation**: failing a required test declines the application
    - **Catalog**: college question banks and aptitude tests

    ## Database
    - MongoDB: collections and per-entity sub-collections
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
