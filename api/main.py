from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from admin import router as admin_router
from auth import router as auth_router
from core import db, settings
from core.log import configure_logging
from locations import router as locations_router
from reviews import router as reviews_router
from sitemaps import router as sitemaps_router
from submissions import router as submissions_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # One DB pool per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Browser clients on the site's own origins call the public endpoints directly.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(locations_router.router, tags=["locations"])
app.include_router(reviews_router.router, tags=["reviews"])
app.include_router(submissions_router.router, tags=["submissions"])
app.include_router(sitemaps_router.router, tags=["sitemaps"])
app.include_router(auth_router.router, tags=["auth"])
app.include_router(admin_router.router, tags=["admin"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": f"{settings.site_name()} api"}
