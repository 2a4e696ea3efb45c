import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import CoreError
from app.core.logging import setup_logging
from app.routers import auth, guest, me
from app.routers.venues import router as venues_router

setup_logging()
log = logging.getLogger("social.api")

app = FastAPI(title="Social API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth.router)
app.include_router(me.router)
app.include_router(guest.router)
app.include_router(venues_router)


@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError):
    if exc.detail:
        log.info("%s %s -> %s (%s)", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


@app.get("/health")
def health():
    return {"status": "ok"}
