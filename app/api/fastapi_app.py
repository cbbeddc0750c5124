from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.auth.routes import router as auth_router
from app.api.health import router as health_router
from app.api.yoto.cards import router as cards_router
from app.api.yoto.publish import router as publish_router
from app.core import configure_logging

configure_logging()

app = FastAPI(
    title="Yoto Playlist Publisher API",
    version="0.1.0",
    description="Device login and playlist publishing to Yoto cards.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

# Yoto routes
app.include_router(auth_router, prefix="/api/yoto/auth", tags=["auth"])
app.include_router(cards_router, prefix="/api/yoto", tags=["cards"])
app.include_router(publish_router, prefix="/api/yoto", tags=["publish"])
