"""
Development server launcher.

Loads .env, then serves the API with uvicorn on ``DEV_HOST:DEV_PORT``
(reloading on changes unless ``DEV_RELOAD=false``).  Uvicorn's own logging
is forwarded to loguru, so the console shows a single format.

Usage:
    python scripts/run_dev.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv()

import uvicorn
from loguru import logger

from app.core.config import settings
from app.core.logger import configure_from_settings


def main() -> None:
    configure_from_settings()
    base_url = f"http://{settings.DEV_HOST}:{settings.DEV_PORT}"
    logger.info(f"Starting Daybook on {base_url} (docs: {base_url}/docs, reload={settings.DEV_RELOAD})")
    logger.info(f"Database: {settings.DATABASE_URL}, time zone: {settings.TIMEZONE}")

    # log_config=None keeps uvicorn from replacing the forwarded handlers
    uvicorn.run("app.main:app", host=settings.DEV_HOST, port=settings.DEV_PORT, reload=settings.DEV_RELOAD,
                log_level=settings.LOG_LEVEL.lower(), log_config=None, )


if __name__ == "__main__":
    main()
