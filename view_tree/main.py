"""Main FastAPI application entry point."""

from pathlib import Path

from dotenv import load_dotenv

from view_tree.config import get_settings
from view_tree.core.app_factory import create_app
from view_tree.logging_config import setup_logging

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "view_tree.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
