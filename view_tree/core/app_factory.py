"""Application factory for creating and configuring the FastAPI app."""

from fastapi import FastAPI

from view_tree import __version__
from view_tree.core.lifespan import lifespan
from view_tree.middleware.error_handlers import register_error_handlers
from view_tree.middleware.logging_middleware import setup_request_logging
from view_tree.routers import demo_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="View Tree",
        description="Pages assembled from view trees whose children render asynchronously.",
        version=__version__,
        lifespan=lifespan,
        license_info={
            "name": "MIT",
        },
    )

    setup_request_logging(app)
    register_error_handlers(app)

    app.include_router(demo_router.router, tags=["views"])

    return app
