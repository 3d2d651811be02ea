import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from api.applications import router as applications_router
from api.companies import router as companies_router
from api.information_requests import router as information_requests_router
from api.lenders import router as lenders_router
from api.offers import router as offers_router
from api.registry import router as registry_router
from api.wizard import router as wizard_router
from services.errors import LifecycleError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Business loan intake, application lifecycle and lender submission API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(wizard_router)
app.include_router(applications_router)
app.include_router(lenders_router)
app.include_router(information_requests_router)
app.include_router(offers_router)
app.include_router(companies_router)
app.include_router(registry_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
