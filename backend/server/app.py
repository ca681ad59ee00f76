"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Apply process-wide logging settings
- Initialize shared resources (health-data store)
- Register routes
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig
from observability import logger
from services.health_data import InMemoryHealthDataStore, demo_health_data

from server.routes import register_routes


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with different configurations
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()

    logger.configure(level=config.log_level, enabled=config.enable_json_logs)

    app = FastAPI(title="Voice Navigation API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One store per process, shared by every session
    app.state.health_store = InMemoryHealthDataStore(demo_health_data())

    # Routes
    register_routes(app)

    return app
