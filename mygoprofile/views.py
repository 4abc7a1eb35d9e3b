from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from mygoprofile.config import Settings
from mygoprofile.dashboard import ProxyReader, load_dashboard, load_reviews
from mygoprofile.deps import get_app_settings
from mygoprofile.session import Session, get_session

router = APIRouter(tags=["ui"])

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def long_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return f"{value:%B} {value.day}, {value.year}"


def web_link(value: str | None) -> str | None:
    """Only http(s) URLs from upstream data become links."""
    if value and value.strip().lower().startswith(("http://", "https://")):
        return value.strip()
    return None


templates.env.filters["long_date"] = long_date
templates.env.filters["web_link"] = web_link


@asynccontextmanager
async def proxy_reader(request: Request) -> AsyncIterator[ProxyReader]:
    """An HTTP client that calls back into this app with the browser's cookies."""
    transport = httpx.ASGITransport(app=request.app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url=str(request.base_url),
        headers={"cookie": request.headers.get("cookie", "")},
        timeout=30,
    ) as client:
        yield ProxyReader(client)


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    error: str | None = None,
    session: Session | None = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
):
    if session is None:
        return templates.TemplateResponse(request, "signin.html", {"error": error})

    async with proxy_reader(request) as reader:
        view = await load_dashboard(reader, concurrency=settings.location_fetch_concurrency)
    return templates.TemplateResponse(request, "dashboard.html", {"session": session, "view": view})


@router.get("/reviews", response_class=HTMLResponse)
async def reviews(
    request: Request,
    location: str | None = None,
    title: str | None = None,
    session: Session | None = Depends(get_session),
):
    if session is None:
        return templates.TemplateResponse(request, "notice.html", {"message": "Please sign in to view reviews"})
    if not (location or "").strip():
        return templates.TemplateResponse(request, "notice.html", {"message": "No location specified"})

    async with proxy_reader(request) as reader:
        view = await load_reviews(reader, location.strip(), title or "Business")
    return templates.TemplateResponse(request, "reviews.html", {"session": session, "view": view})
