"""
Main application entry point - FastAPI app instance and configuration.
This is where the ASGI application is created and configured.
Run with: uvicorn app.main:app --reload
"""

from fastapi import Depends, FastAPI

from app.core.config import settings  # Application settings
from app.core.logging_config import configure_logging
from app.deps import get_line_client, get_notion_client
from app.environments.line.client import LineMessagingClient
from app.environments.notion.client import NotionClient
from app.routers import webhook  # LINE webhook

configure_logging("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)

# ---------------------------------------------------------------------------
# CREATE FASTAPI APPLICATION
# ---------------------------------------------------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ---------------------------------------------------------------------------
# REGISTER ROUTERS
# ---------------------------------------------------------------------------
# webhook.router: /line-webhook for LINE Messaging API events
app.include_router(webhook.router)


# ---------------------------------------------------------------------------
# HEALTH CHECK ENDPOINTS
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
def health_check():
    """
    Simple liveness check.

    Does NOT call Notion or LINE (use /ready for that).

    Returns:
        {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_check(
    notion: NotionClient = Depends(get_notion_client),
    line: LineMessagingClient = Depends(get_line_client),
):
    """
    Check that the Notion and LINE credentials are accepted.

    Returns:
        {"status": "ok" | "degraded", "notion": bool, "line": bool}
    """
    checks = {
        notion.service_name: await notion.validate_access(),
        line.service_name: await line.validate_access(),
    }
    return {"status": "ok" if all(checks.values()) else "degraded", **checks}


@app.get("/cron", tags=["health"])
def cron():
    """Hook for a scheduled trigger. Nothing is scheduled yet."""
    return {"status": "ok"}
