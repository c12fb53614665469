import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import engine
from app.errors import DomainError, InvalidParamsError
from app.middleware import TimingMiddleware
from app.routers import auth, comments, threads

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting chat API (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await engine.dispose()

app = FastAPI(
    title="Chat API",
    description="Users, discussion threads and comments behind transactional services",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        # Internal causes stay in the logs.
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "detail": "internal server error"},
        )

    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    if isinstance(exc, InvalidParamsError):
        detail = [e.message for e in exc.errors]
    else:
        detail = exc.message
    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "detail": detail})


# Routers
app.include_router(auth.router)
app.include_router(threads.router)
app.include_router(comments.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
