import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from app.config import LOG_LEVEL, STATIC_DIR
from app.database import close_db, init_db
from app.routers import sessions, tools
from app.services.llm import get_llm_client
from app.services.shell import registry

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting MediSage...")
    await init_db()
    logger.info("Database initialized")
    yield
    await registry.close_all()
    await close_db()
    logger.info("MediSage shut down")


app = FastAPI(
    title="MediSage",
    description="AI pharmaceutical assistant: medication info, interaction checks and prescription analysis",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(tools.router)
app.include_router(sessions.router)
app.include_router(sessions.ws_router)

# Serve static files
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def serve_ui():
    return FileResponse(Path(STATIC_DIR) / "index.html")


@app.get("/health")
async def health():
    llm = get_llm_client()
    return {
        "status": "ok",
        "provider": llm.provider,
        "speech": llm.speech_available(),
        "sessions": len(registry),
    }
