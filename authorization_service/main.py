"""
Authorization Service: OAuth 2.0 authorization code grant.
GET /auth, GET /confirm_auth, POST /token, JWKS and metadata.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from authorization_service.authorize import router as authorize_router
from authorization_service.database import init_db, SessionLocal
from authorization_service.errors import INVALID_REQUEST, SERVER_ERROR, OAuthError
from authorization_service.keys import get_signing_key
from authorization_service.seed import seed_from_env
from authorization_service.token_endpoint import router as token_router
from authorization_service.well_known import router as well_known_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, load signing key, seed client from env on startup."""
    init_db()
    get_signing_key()
    db = SessionLocal()
    try:
        seed_from_env(db)
    finally:
        db.close()
    yield


app = FastAPI(title="Authorization Service", version="1.0.0", lifespan=lifespan)
app.include_router(authorize_router, tags=["authorize"])
app.include_router(token_router, tags=["token"])
app.include_router(well_known_router, tags=["well-known"])


@app.exception_handler(OAuthError)
async def oauth_error_handler(request: Request, exc: OAuthError):
    # Fixed error code only; the description stays in the logs
    return JSONResponse({"error": exc.error}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug("Request validation failed on %s: %s", request.url.path, exc.errors())
    return JSONResponse({"error": INVALID_REQUEST}, status_code=400)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s", request.url.path, exc_info=exc)
    return JSONResponse({"error": SERVER_ERROR}, status_code=500)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse({"error": SERVER_ERROR}, status_code=500)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "authorization_service"}


if __name__ == "__main__":
    import uvicorn

    from authorization_service.config import PORT

    uvicorn.run(
        "authorization_service.main:app",
        host="127.0.0.1",
        port=PORT,
        reload=True,
    )
