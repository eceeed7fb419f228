import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.log_config import setup_logging
from app.db.database import ensure_indexes
from app.routers import certificates, courses, payments
from app.routers.auth import login
from app.routers.roles import admins, companies, students
from app.utils.exceptions import register_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await ensure_indexes()
    logger.info("EduFlex backend started (%s)", settings.ENVIRONMENT)
    yield


app = FastAPI(
    title="EduFlex Backend",
    description="Course marketplace API: enrollment, payments, progress and certificates",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# certificate PDFs
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")


@app.get("/")
def root():
    return {
        "message": "EduFlex Backend API",
        "version": "1.0.0",
        "status": "operational",
    }


# Include routers
app.include_router(login.router)

app.include_router(admins.router)
app.include_router(companies.router)
app.include_router(students.router)

app.include_router(courses.router)
app.include_router(payments.router)
app.include_router(certificates.router)
