from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import api
from app.api import include_routers
from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.database import AsyncSessionLocal, init_databases, close_databases
from app.middleware.error_handler import register_exception_handlers
from app.services.persistence import SqlPersistenceGateway
from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    await init_databases()

    persistence = SqlPersistenceGateway(AsyncSessionLocal, backlog_limit=settings.room_backlog_limit)
    coordinator = ChatCoordinator(persistence)
    await coordinator.start()
    app.state.coordinator = coordinator
    logger.info("Application started")

    yield

    # Shutdown
    await coordinator.stop()
    await close_databases()
    logger.info("Application stopped")


app = FastAPI(title="Realtime Chat", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
include_routers(app, "api", api.__path__)


@app.get("/")
async def root():
    return {"message": "Realtime Chat API"}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
