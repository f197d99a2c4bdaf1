from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio

from broadcaster import Broadcaster
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL, ROOM_IDLE_TTL, ROOM_SWEEP_INTERVAL
from dispatcher import PollDispatcher
from logging_config import get_logger, setup_logging
from rooms import RoomRegistry
from routers.rooms import rooms_router
from routers.ws import ws_router
from schemas.rooms import HealthResponse

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def sweep_idle_rooms(registry: RoomRegistry, max_idle_seconds: int, interval: int):
    """Background task that evicts rooms nobody has been in for max_idle_seconds."""
    logger.info(f"Starting idle room sweeper (ttl={max_idle_seconds}s, interval={interval}s)")
    try:
        while True:
            await asyncio.sleep(interval)
            evicted = registry.evict_idle(max_idle_seconds)
            if evicted:
                logger.info(f"Evicted {len(evicted)} idle rooms, {len(registry)} remaining")
    except asyncio.CancelledError:
        logger.info("Idle room sweeper cancelled")
        raise


def create_app(room_idle_ttl: int = ROOM_IDLE_TTL, sweep_interval: int = ROOM_SWEEP_INTERVAL) -> FastAPI:
    registry = RoomRegistry()
    broadcaster = Broadcaster()
    dispatcher = PollDispatcher(registry, broadcaster)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = None
        if room_idle_ttl > 0:
            sweeper = asyncio.create_task(sweep_idle_rooms(registry, room_idle_ttl, sweep_interval))
        yield
        # Shutdown: stop the sweeper and drop every room
        if sweeper:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
        logger.info(f"Shutting down with {len(registry)} rooms and {len(dispatcher)} open sessions")
        registry.clear()

    app = FastAPI(
        title="Live Poll Relay",
        description="Real-time multiple-choice polling over WebSockets",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.broadcaster = broadcaster
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)
    app.include_router(ws_router)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="healthy", rooms=len(registry))

    logger.info("FastAPI application initialized")
    return app


app = create_app()
