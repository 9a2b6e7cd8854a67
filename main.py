import sys
import logging
import os

from dotenv import load_dotenv

from dataset_capture.config import AppConfig
from dataset_capture.di.dependencies import initialize_dependencies, shutdown_dependencies
from dataset_capture.api.fastapi_server import DatasetCaptureServer

logger = logging.getLogger(__name__)


def main():
    """Application entry point: ``python main.py [environment]``"""
    env_version = sys.argv[1] if len(sys.argv) > 1 else None
    if env_version and os.path.isfile(f".env.{env_version}"):
        load_dotenv(f".env.{env_version}")
    load_dotenv()

    config = AppConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        logger.info(f"🔧 Loading configuration for environment: {env_version or 'default'}")
        config.ensure_directories()
        if not config.validate():
            logger.error("❌ Invalid configuration, exiting")
            sys.exit(1)

        logger.info("🔌 Initializing dependencies...")
        container = initialize_dependencies(config)

        upload_queue = container.get_upload_queue_service()
        upload_queue.resume_pending_uploads()
        upload_queue.start()

        DatasetCaptureServer(config, container).run()

    except KeyboardInterrupt:
        logger.info("⌨️  Application interrupted by user")
    except Exception as e:
        logger.error(f"💥 Application error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        shutdown_dependencies()


if __name__ == "__main__":
    main()
