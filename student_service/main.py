from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from student_service.config import settings
from student_service import database
from student_service.routers import dashboard_router, enrollments_router, quizzes_router

# Setup logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Student Service...")
    if not database.init_db():
        logger.warning("MongoDB unavailable, serving from in-memory storage")
    database.get_store()

    yield

    # Shutdown
    logger.info("Shutting down Student Service...")
    database.close_db()


# Create FastAPI app
app = FastAPI(
    title="Student Service - Learning Management System",
    description="Student dashboards, pending quizzes, quiz submission and enrollments",
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(dashboard_router, prefix="/api/v1")
app.include_router(quizzes_router, prefix="/api/v1")
app.include_router(enrollments_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health")
def health_check():
    client = database.get_client()
    if client is not None:
        try:
            client.admin.command('ping')
            db_status = "connected"
        except Exception as e:
            logger.error(f"MongoDB ping failed: {e}")
            db_status = "disconnected"
    else:
        db_status = "memory"

    return {
        "status": "healthy",
        "service": "student-service",
        "version": settings.VERSION,
        "database": db_status,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/")
def root():
    return {
        "message": "Student Service - Learning Management System",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "student_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
