from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from infra.storage.connection import init_storage
from api.routers import (
    comments,
    music,
    notifications,
    system,
)

from config import settings
from utils.logger import get_logger

logger = get_logger(__name__)

# Lifespan event to handle startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_storage(app)  # ストレージバックエンドの選択 (KV / ローカルファイル)
    yield

app = FastAPI(title="MusicNFT Backend API", lifespan=lifespan)

# CORS Configuration
origins = [
    f"http://localhost:{settings.FRONTEND_PORT}",  # Frontend Dev Server
    f"http://127.0.0.1:{settings.FRONTEND_PORT}",  # Frontend Dev Server (IP)
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error envelope: {success: false, error: "..."}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request"})

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

# Root endpoint for health check
@app.get("/")
async def root():
    return {"message": "MusicNFT Backend API is running"}

# Include Routers
app.include_router(comments.router)
app.include_router(music.router)
app.include_router(notifications.router)
app.include_router(system.router)
