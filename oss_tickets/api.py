"""
HTTP endpoint for on-demand ticket exports.

    GET /api/tickets?ticketType=Complaint&startDate=2024-01-15&endDate=2024-01-20&radio=Current

Run with ``python -m oss_tickets.main serve`` or ``uvicorn oss_tickets.api:app``.
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from oss_tickets.config import PortalSettings
from oss_tickets.errors import ConfigurationError, InvalidRequest, ScrapeError
from oss_tickets.exporter import scrape_tickets
from oss_tickets.models import ScrapeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tickets"])


def get_settings() -> PortalSettings:
    return PortalSettings.from_env()


def get_scraper():
    return scrape_tickets


@router.get("/tickets")
def get_tickets(
    ticket_type: str | None = Query(default=None, alias="ticketType"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    radio: str | None = Query(default=None, description="Status filter, e.g. Current, History, Both"),
    settings: PortalSettings = Depends(get_settings),
    scraper=Depends(get_scraper),
) -> JSONResponse:
    """
    Export tickets matching the filter and return them as JSON records.

    A plain ``def`` endpoint: FastAPI runs it on the threadpool, which the
    synchronous Playwright driver requires.
    """
    if not ticket_type or not start_date or not end_date or not radio:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing query parameters"},
        )

    try:
        request = ScrapeRequest.from_params(ticket_type, start_date, end_date, radio)
    except InvalidRequest as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid query parameters", "details": str(exc)},
        )

    try:
        data = scraper(request, settings)
    except ScrapeError as exc:
        logger.error(f"Ticket export failed: {exc.describe()}")
        return _server_error(exc)
    except Exception as exc:
        logger.exception(f"Ticket export failed unexpectedly: {exc}")
        return _server_error(exc)

    return JSONResponse(content={"success": True, "data": data})


def _server_error(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Scraping failed", "details": str(exc)},
    )


async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Portal settings unavailable: {exc}")
    return _server_error(exc)


def create_app() -> FastAPI:
    load_dotenv()
    app = FastAPI(title="OSS Ticket Export", version="1.0.0")
    app.include_router(router)
    app.add_exception_handler(ConfigurationError, _configuration_error)

    @app.get("/health", tags=["meta"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
