import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import Settings, settings as default_settings
from .errors import register_error_handlers
from .middleware import install_middleware
from .routers import files, health, tasks
from .services.agents import GenericAgent, SheetsAgent
from .services.llm import LLM
from .storage.repo import Repo

logger = logging.getLogger(__name__)


def create_app(cfg: Settings | None = None, repo: Repo | None = None, llm: LLM | None = None) -> FastAPI:
    """Build the gateway. ``repo`` and ``llm`` are injectable for tests."""
    cfg = cfg or default_settings
    if llm is None:
        llm = LLM(cfg.check())
    repo = repo if repo is not None else Repo()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Vanta backend listening on http://localhost:%s", cfg.port)
        logger.info("Allowed origins: %s", cfg.cors_origins)
        yield
        if hasattr(llm, "aclose"):
            await llm.aclose()

    app = FastAPI(title="Vanta Protocol Gateway", version="1.0.0", lifespan=lifespan)
    app.state.settings = cfg
    app.state.repo = repo
    app.state.llm = llm
    app.state.generic_agent = GenericAgent(repo, llm)
    app.state.sheets_agent = SheetsAgent(repo, llm)

    install_middleware(app, cfg)
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(files.router)
    app.include_router(tasks.router)
    return app
