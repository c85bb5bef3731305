import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.routes_auth import router as auth_router
from src.api.routes_thumbnails import router as thumbnails_router
from src.api.routes_videos import router as videos_router
from src.core.config import settings
from src.core.database import close_mongo_connection, connect_to_mongo
from src.core.storage import object_store
from src.core.thumbnail_store import build_thumbnail_store

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tubely")

@app.on_event("startup")
async def startup_event():
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET is not set")
    await connect_to_mongo()
    object_store.connect()
    if settings.THUMBNAIL_STORAGE == "disk":
        os.makedirs(settings.ASSETS_ROOT, exist_ok=True)
    app.state.thumbnail_store = build_thumbnail_store()
    logger.info("Thumbnail storage mode: %s", settings.THUMBNAIL_STORAGE)

@app.on_event("shutdown")
async def shutdown_event():
    await close_mongo_connection()

app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(videos_router, prefix="/videos", tags=["videos"])
app.include_router(thumbnails_router, prefix="/thumbnails", tags=["thumbnails"])

if settings.THUMBNAIL_STORAGE == "disk":
    app.mount("/assets", StaticFiles(directory=settings.ASSETS_ROOT, check_dir=False), name="assets")

# Allow CORS (for frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Replace with your frontend URL in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Tubely video service is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)
