"""Data loading for the HTML views.

The views never touch a data source directly: they read the /api/business
endpoints over HTTP and turn every non-200 answer into a soft error.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from mygoprofile.models import Account, Insights, Location, Review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    data: dict[str, Any]


@dataclass(frozen=True)
class Err:
    status_code: int
    message: str


FetchResult = Ok | Err

# answers that signing in again can fix
REAUTH_STATUSES = (401, 403)


class ProxyReader:
    """Reads the API proxy layer with the caller's cookies."""

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def get(self, path: str, params: dict[str, str] | None = None) -> FetchResult:
        try:
            r = await self.http_client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("GET %s failed: %r", path, e)
            return Err(0, "We couldn't reach the server. Please try again.")

        try:
            body = r.json()
        except ValueError:
            body = None

        if r.status_code != 200:
            message = body.get("error") if isinstance(body, dict) else None
            return Err(r.status_code, message or f"Request failed ({r.status_code})")
        if not isinstance(body, dict):
            return Err(r.status_code, "Unexpected response from server")
        return Ok(body)


@dataclass
class DashboardView:
    accounts: list[Account] = field(default_factory=list)
    locations: list[Location] = field(default_factory=list)
    error: str | None = None
    error_status: int | None = None
    location_fetches: int = 0

    @property
    def empty(self) -> bool:
        return self.error is None and not self.locations

    @property
    def needs_sign_in(self) -> bool:
        return self.error_status in REAUTH_STATUSES


@dataclass
class ReviewsView:
    location_name: str
    title: str
    reviews: list[Review] = field(default_factory=list)
    insights: Insights | None = None
    error: str | None = None
    error_status: int | None = None

    @property
    def empty(self) -> bool:
        return self.error is None and not self.reviews

    @property
    def needs_sign_in(self) -> bool:
        return self.error_status in REAUTH_STATUSES


def _parse_list(items: Any, model: type) -> list:
    out = []
    for item in items or []:
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping unreadable %s: %s", model.__name__, e.errors()[:1])
    return out


async def load_dashboard(reader: ProxyReader, concurrency: int = 4) -> DashboardView:
    """Accounts first, then the locations of every account (bounded fan-out, account order kept).

    A 404 for one account means it has no locations. Any other failed location
    call is logged; it only becomes the page error when no location loaded at all.
    """
    result = await reader.get("/api/business/accounts")
    if isinstance(result, Err):
        return DashboardView(error=result.message, error_status=result.status_code)

    view = DashboardView(accounts=_parse_list(result.data.get("accounts"), Account))
    if not view.accounts:
        return view

    sem = asyncio.Semaphore(max(1, concurrency))

    async def fetch(account: Account) -> list[Location] | Err:
        async with sem:
            view.location_fetches += 1
            res = await reader.get("/api/business/locations", params={"accountName": account.name})
        if isinstance(res, Ok):
            return _parse_list(res.data.get("locations"), Location)
        if res.status_code == 404:
            logger.info("No locations for %s", account.name)
            return []
        logger.warning("Locations of %s failed: %s %s", account.name, res.status_code, res.message)
        return res

    failures: list[Err] = []
    for res in await asyncio.gather(*(fetch(a) for a in view.accounts)):
        if isinstance(res, Err):
            failures.append(res)
        else:
            view.locations.extend(res)

    if failures and not view.locations:
        view.error = failures[0].message
        view.error_status = failures[0].status_code
    return view


async def load_reviews(reader: ProxyReader, location_name: str, title: str) -> ReviewsView:
    view = ReviewsView(location_name=location_name, title=title)
    reviews_res, insights_res = await asyncio.gather(
        reader.get("/api/business/reviews", params={"locationName": location_name}),
        reader.get("/api/business/insights", params={"locationName": location_name}),
    )

    if isinstance(reviews_res, Err):
        view.error = reviews_res.message
        view.error_status = reviews_res.status_code
    else:
        view.reviews = _parse_list(reviews_res.data.get("reviews"), Review)

    # insights are optional on this page
    if isinstance(insights_res, Ok):
        try:
            view.insights = Insights.model_validate(insights_res.data.get("insights") or {})
        except ValidationError as e:
            logger.warning("Unreadable insights for %s: %s", location_name, e.errors()[:1])
    return view
