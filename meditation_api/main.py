# meditation_api/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meditation_api.config import CORS_ORIGINS, LOG_LEVEL
from meditation_api.db.mongo import init_db_indexes
from meditation_api.errors import register_exception_handlers

# Routers
from meditation_api.routes.auth import router as auth_router
from meditation_api.routes.achievements import router as achievements_router, user_router as user_achievements_router
from meditation_api.routes.meditation_sessions import router as meditation_sessions_router
from meditation_api.routes.stress import router as stress_router
from meditation_api.routes.stress_techniques import router as stress_techniques_router
from meditation_api.routes.group_sessions import router as group_sessions_router
from meditation_api.routes.chat import router as chat_router
from meditation_api.routes.export import router as export_router

logger = logging.getLogger("meditation_api")


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for noisy in ("pymongo", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


setup_logging()

# ---------------------------
# Build FastAPI app
# ---------------------------
fastapi_app = FastAPI(title="Meditation API", version="1.0.0", docs_url="/api-docs")

fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(fastapi_app)

@fastapi_app.get("/health")
async def health_check():
    return {"status": "OK", "message": "Meditation API is running."}

# ---------------------------
# Routers
# ---------------------------
fastapi_app.include_router(auth_router)
fastapi_app.include_router(achievements_router)
fastapi_app.include_router(user_achievements_router)
fastapi_app.include_router(meditation_sessions_router)
fastapi_app.include_router(stress_router)
fastapi_app.include_router(stress_techniques_router)
fastapi_app.include_router(group_sessions_router)
fastapi_app.include_router(chat_router)
fastapi_app.include_router(export_router)

# ---------------------------
# Startup tasks
# ---------------------------
@fastapi_app.on_event("startup")
async def on_startup():
    try:
        await init_db_indexes()
        logger.info("Database indexes ensured")
    except Exception:
        # Don't crash the app if indexes fail; just log it
        logger.exception("Index init error")

# ---------------------------
# Final ASGI app export
# ---------------------------
app = fastapi_app
