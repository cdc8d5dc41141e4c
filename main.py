import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import CORS_ORIGINS, LOG_LEVEL
from app.database import engine, Base, get_db
from app.exceptions import PortalError
from app.auth.session import AuthStateNotifier, log_auth_event
from app.auth.routes import router as auth_router
from app.roles.routes import router as session_router
from app.catalog.routes import router as catalog_router
from app.applications.routes import router as applications_router
from app.citizens.routes import router as citizens_router
from app.documents.routes import router as storage_router
from app.admin.routes import router as admin_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Citizen Services Portal",
    description="Government service applications for citizens, officers and administrators",
    version="1.0.0"
)

app.state.auth_notifier = AuthStateNotifier()
app.state.auth_notifier.subscribe(log_auth_event)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Add middleware for COOP/COEP headers ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin-allow-popups"
        response.headers["Cross-Origin-Embedder-Policy"] = "unsafe-none"
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response

app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code == 403:
        logger.warning(f"{request.method} {request.url.path} denied: {exc.message}")
    elif exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(auth_router)
app.include_router(session_router)
app.include_router(catalog_router)
app.include_router(applications_router)
app.include_router(citizens_router)
app.include_router(storage_router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "message": "Citizen Services Portal API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check database probe failed")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
    return {"status": "healthy", "database": "ok"}
