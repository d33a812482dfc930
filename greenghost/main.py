from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from greenghost.config import settings
from greenghost.database import check_connection, init_db
from greenghost.errors import GreenGhostError
from greenghost.routes import routers
from greenghost.services.mailer import build_mailer

# Enable logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Init app
app = FastAPI(title="GreenGhost Backend", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600
)

for router in routers:
    app.include_router(router)
    logger.info(f"Included router: {router.prefix}")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "status": "ok",
        "message": "Welcome to the GreenGhost Backend API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": [
            "/api/waitlist - Waitlist signup and verification",
            "/api/email-templates/* - Email templates and campaigns (admin)",
            "/api/admin/* - Admin authentication",
            "/api/health - System health check"
        ]
    }


# ------------------ Error handlers ------------------

@app.exception_handler(GreenGhostError)
async def domain_error_handler(request: Request, exc: GreenGhostError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.details}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error, "details": exc.details})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "details": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Internal server error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": "An unexpected error occurred"})


# ------------------ Lifecycle ------------------

@app.on_event("startup")
async def startup_event():
    logger.info("🚀 GreenGhost Backend starting up...")
    app.state.mailer = build_mailer(settings)
    if check_connection():
        init_db()
    logger.info(f"🌐 CORS enabled for origins: {settings.CORS_ORIGINS}")
    logger.info("✅ Server is ready to handle requests")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 GreenGhost Backend shutting down...")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "greenghost.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )
