from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from core import db
from core.env import env_list
from core.errors import HandlError, handl_error_handler
from core.logging import configure_logging
from form_definitions import router as form_definitions_router
from form_submissions import router as form_submissions_router
from notifications import service as notifications_service

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool and the mail sender once per process.
    await db.init_pool()
    notifications_service.init_sender()
    try:
        yield
    finally:
        notifications_service.close_sender()
        await db.close_pool()


app = FastAPI(title="Handl", lifespan=lifespan)

allowed_origins = env_list("CORS_ALLOWED_ORIGINS") or [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials="*" not in allowed_origins,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)

app.add_exception_handler(HandlError, handl_error_handler)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(form_definitions_router.router, tags=["form-definitions"])
app.include_router(form_submissions_router.router, tags=["form-submissions"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "handl api"}
