"""FastAPI application entry point."""

from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .providers.providers_base import ProviderDriver


def create_app(
    config: AppConfig | None = None,
    *,
    driver: ProviderDriver | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies.

    Configuration is read once here; a missing provider token aborts startup.
    """
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="MediaGen")
    include_routers(app, cfg, driver=driver)
    return app


app = create_app()
