"""
marketplace/main.py

FastAPI application for the listings marketplace.
Run: uvicorn marketplace.main:app --reload (from repo root)

Every error response has the shape {"error": "<message>"}:
- ListingError subclasses carry their own status (400/403/404/409/500)
- HTTPException keeps its status (401 for auth, 403 for role gates)
- request validation failures become 400
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domains.listing.errors import ListingError
from marketplace.config import CORS_ORIGINS, IS_DEV, IS_PROD
from marketplace.db import init_db
from marketplace.routes_projects import router as projects_router
from marketplace.routes_properties import router as properties_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


# ---------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------
app = FastAPI(title="Listings Marketplace Backend", version="0.1", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if IS_PROD else ["*"],  # Restrict origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------
# Error handlers
# ---------------------------------------------------------
@app.exception_handler(ListingError)
async def listing_error_handler(request: Request, exc: ListingError) -> JSONResponse:
    if exc.status_code >= 500 or IS_DEV:
        print(f"[API] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        problems.append(f"{field}: {err.get('msg', 'invalid value')}")
    if IS_DEV:
        print(f"[API] Validation failed on {request.method} {request.url.path}: {problems}")
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "Invalid request"})


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


app.include_router(properties_router)
app.include_router(projects_router)
