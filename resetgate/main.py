"""Main application entry point for the FastAPI application.

``uvicorn resetgate.main:app`` serves the module-level app;
``python -m resetgate.main`` does the same with the configured host and port.
"""

import uvicorn

from resetgate.core.application import create_application
from resetgate.core.initialization import initialize_application

settings = initialize_application()

app = create_application(settings)


if __name__ == "__main__":
    uvicorn.run(
        "resetgate.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.RELOAD,
        log_config=None,
    )
