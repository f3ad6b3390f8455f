import asyncio
import logging
import signal
from typing import Callable, Optional

from app_config import (
    STORE_BACKEND_MEMORY,
    AppConfig,
    AppConfigurationError,
    SecretConfig,
    load_app_config,
    load_secret_config,
    resolve_config_path,
)
from runtime import RuntimeApp, RuntimeBootstrap, RuntimeHooks
from server import ServerConfigurationError, UIServer, UIServerConfig
from session_timer import SessionStoreLike
from store import (
    ApiClientConfig,
    HttpSessionStore,
    InMemorySessionStore,
    StoreConfigurationError,
)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("runtime")


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    request_stop: Callable[[], None],
) -> None:
    """Set up graceful shutdown on SIGTERM and SIGINT."""
    del loop  # request_stop is already thread-safe.
    logger = logging.getLogger("runtime")

    def signal_handler(signum: int, frame) -> None:
        del frame
        logger.info("%s received, stopping...", signal.Signals(signum).name)
        request_stop()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


def build_store(app_config: AppConfig, secret_config: SecretConfig) -> SessionStoreLike:
    """Create the configured session store.

    Raises ``StoreConfigurationError`` for unusable API settings.
    """
    if app_config.store.backend == STORE_BACKEND_MEMORY:
        return InMemorySessionStore(
            app_config.store.owner_id,
            logger=logging.getLogger("session_store"),
        )

    api_config = ApiClientConfig.from_settings(
        app_config.api,
        token=secret_config.api_token,
    )
    return HttpSessionStore(api_config, logger=logging.getLogger("session_store"))


def build_ui_server(app_config: AppConfig, logger: logging.Logger) -> Optional[UIServer]:
    try:
        ui_server_config = UIServerConfig.from_settings(app_config.ui_server)
    except ServerConfigurationError as error:
        logger.error("UI server configuration error: %s", error)
        logger.warning("Continuing without UI server.")
        return None

    if not ui_server_config.enabled:
        logger.info("UI server disabled via ui_server.enabled=false")
        return None
    return UIServer(config=ui_server_config, logger=logging.getLogger("ui_server"))


def main() -> int:
    """Run the focus session timer."""
    logger = setup_logging(level=logging.INFO)

    # Load typed app configuration and secrets.
    try:
        config_path = resolve_config_path()
        app_config = load_app_config(str(config_path))
        secret_config = load_secret_config(
            require_api_token=app_config.store.backend != STORE_BACKEND_MEMORY,
        )
        logger.info("Loaded runtime config: %s", config_path)
    except AppConfigurationError as error:
        logger.error("App configuration error: %s", error)
        return 1

    try:
        store = build_store(app_config, secret_config)
    except StoreConfigurationError as error:
        logger.error("Session store configuration error: %s", error)
        return 1
    logger.info("Session store backend: %s", app_config.store.backend)

    app = RuntimeApp(
        RuntimeBootstrap(
            logger=logger,
            app_config=app_config,
            store=store,
            ui_server=build_ui_server(app_config, logger),
            hooks=RuntimeHooks(install_signal_handlers=install_signal_handlers),
        )
    )
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
