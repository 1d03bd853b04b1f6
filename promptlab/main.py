# promptlab/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from promptlab.core import config
from promptlab.api.routers.health import router as health_router
from promptlab.api.routers.agents import router as agents_router
from promptlab.api.routers.chat import router as chat_router
from promptlab.api.routers.analysis import router as analysis_router
from promptlab.providers.analysis import create_analysis_model
from promptlab.services.chat_service import AgentChatService

logger = logging.getLogger("promptlab")


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Prompt Lab API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # one service per process; it keeps no per-request state
    app.state.chat_service = AgentChatService(logger=logging.getLogger("promptlab.chat"))
    app.state.analysis_factory = create_analysis_model

    for provider in config.missing_api_keys():
        logger.warning("%s API key is not set; requests to %s will fail", provider, provider)

    # Routers
    app.include_router(health_router)
    app.include_router(agents_router)
    app.include_router(chat_router)
    app.include_router(analysis_router)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    logger.info("starting server: env=%s port=%s ws=/api/chat/ws", config.APP_ENV, config.PORT)
    uvicorn.run("promptlab.main:app", host="0.0.0.0", port=config.PORT, log_level=config.LOG_LEVEL.lower())
