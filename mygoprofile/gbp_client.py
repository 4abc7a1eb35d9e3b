"""Google Business Profile data sources."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from mygoprofile.errors import (
    BusinessDataError,
    BusinessErrorKind,
    classify_response,
    classify_transport_error,
)
from mygoprofile.models import Account, Insights, Location, PostalAddress, Review

logger = logging.getLogger(__name__)

GOOGLE_ACCOUNTS_URL = "https://mybusinessaccountmanagement.googleapis.com/v1/accounts"
GOOGLE_LOCATIONS_URL = "https://mybusinessbusinessinformation.googleapis.com/v1/{account}/locations"

# Reviews list (GBP v4)
GOOGLE_REVIEWS_LIST_URL = "https://mybusiness.googleapis.com/v4/{parent}/reviews"

GOOGLE_INSIGHTS_URL = (
    "https://businessprofileperformance.googleapis.com/v1/{location}:fetchMultiDailyMetricsTimeSeries"
)

LOCATIONS_READ_MASK = "name,title,storefrontAddress,phoneNumbers,websiteUri"

VIEW_METRICS = (
    "BUSINESS_IMPRESSIONS_DESKTOP_MAPS",
    "BUSINESS_IMPRESSIONS_DESKTOP_SEARCH",
    "BUSINESS_IMPRESSIONS_MOBILE_MAPS",
    "BUSINESS_IMPRESSIONS_MOBILE_SEARCH",
)
CLICK_METRIC = "WEBSITE_CLICKS"
CALL_METRIC = "CALL_CLICKS"
DIRECTIONS_METRIC = "BUSINESS_DIRECTION_REQUESTS"


class BusinessDataSource(Protocol):
    """Read access to one user's Business Profile data.

    Every operation returns its result or raises BusinessDataError.
    """

    async def list_accounts(self) -> list[Account]:
        """List the accounts the user can manage."""

    async def list_locations(self, account_name: str) -> list[Location]:
        """List locations of ``account_name``; NOT_FOUND when there are none."""

    async def list_reviews(self, location_name: str) -> list[Review]:
        """List reviews of ``location_name``, newest update first."""

    async def get_insights(self, location_name: str) -> Insights:
        """Aggregate performance counters of ``location_name``."""


def full_location_name(account_name: str, location_name: str) -> str:
    """Always return accounts/.../locations/..."""
    if location_name.startswith("locations/"):
        return f"{account_name}/{location_name}"
    return location_name


def location_id(location_name: str) -> str:
    """accounts/1/locations/2 -> locations/2 (Business Information and Performance APIs)."""
    idx = location_name.find("locations/")
    return location_name[idx:] if idx >= 0 else location_name


def parse_storefront_address(sa: dict[str, Any] | None) -> PostalAddress | None:
    if not sa:
        return None
    return PostalAddress(
        address_lines=[line for line in sa.get("addressLines") or [] if line],
        locality=sa.get("locality") or None,
        region=sa.get("administrativeArea") or None,
        postal_code=sa.get("postalCode") or None,
        country=sa.get("regionCode") or None,
    )


def parse_location(account_name: str, raw: dict[str, Any]) -> Location | None:
    loc_name = raw.get("name")
    if not loc_name:
        return None
    phones = raw.get("phoneNumbers") or {}
    return Location(
        name=full_location_name(account_name, loc_name),
        title=raw.get("title") or "Untitled location",
        address=parse_storefront_address(raw.get("storefrontAddress")),
        primary_phone=phones.get("primaryPhone") or None,
        website_uri=raw.get("websiteUri") or None,
    )


def sum_daily_metrics(payload: dict[str, Any]) -> Insights:
    totals: dict[str, int] = {}
    for series_group in payload.get("multiDailyMetricTimeSeries") or []:
        for series in series_group.get("dailyMetricTimeSeries") or []:
            metric = series.get("dailyMetric")
            if not metric:
                continue
            for dated in (series.get("timeSeries") or {}).get("datedValues") or []:
                # values are int64 strings and absent on days without data
                totals[metric] = totals.get(metric, 0) + int(dated.get("value") or 0)
    return Insights(
        total_views=sum(totals.get(m, 0) for m in VIEW_METRICS),
        total_clicks=totals.get(CLICK_METRIC, 0),
        total_calls=totals.get(CALL_METRIC, 0),
        total_direction_requests=totals.get(DIRECTIONS_METRIC, 0),
    )


@dataclass
class GoogleBusinessDataSource(BusinessDataSource):
    """Business Profile REST APIs, called with the user's delegated access token."""

    access_token: str
    http_client: httpx.AsyncClient
    timeout: float = 30
    reviews_page_size: int = 50
    max_reviews: int = 3000
    insights_days: int = 30
    today: date | None = field(default=None, repr=False)

    async def _get(self, url: str, params: Any = None) -> dict[str, Any]:
        try:
            r = await self.http_client.get(
                url,
                headers={"Authorization": f"Bearer {self.access_token}"},
                params=params,
                timeout=self.timeout,
            )
        except httpx.TransportError as e:
            logger.warning("Google GET %s failed: %r", url, e)
            raise classify_transport_error(e) from e

        logger.debug("Google GET %s -> %s", url, r.status_code)
        if r.status_code != 200:
            err = classify_response(r)
            logger.warning("Google GET %s -> %s (%s): %s", url, r.status_code, err.kind.value, err.message)
            raise err

        try:
            data = r.json()
        except ValueError as e:
            raise BusinessDataError(
                BusinessErrorKind.UNKNOWN, f"Invalid JSON from {url}", status_code=r.status_code
            ) from e
        return data if isinstance(data, dict) else {}

    async def list_accounts(self) -> list[Account]:
        accounts: list[Account] = []
        page_token = None
        while True:
            params = {"pageToken": page_token} if page_token else None
            data = await self._get(GOOGLE_ACCOUNTS_URL, params=params)
            for acc in data.get("accounts") or []:
                if not acc.get("name"):
                    continue
                accounts.append(
                    Account(
                        name=acc["name"],
                        account_name=acc.get("accountName"),
                        type=acc.get("type"),
                        verification_state=acc.get("verificationState"),
                    )
                )
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        return accounts

    async def list_locations(self, account_name: str) -> list[Location]:
        locations: list[Location] = []
        page_token = None
        while True:
            params = {"readMask": LOCATIONS_READ_MASK, "pageSize": 100}
            if page_token:
                params["pageToken"] = page_token
            data = await self._get(GOOGLE_LOCATIONS_URL.format(account=account_name), params=params)
            for raw in data.get("locations") or []:
                loc = parse_location(account_name, raw)
                if loc is not None:
                    locations.append(loc)
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        if not locations:
            raise BusinessDataError(
                BusinessErrorKind.NOT_FOUND, f"No locations found for {account_name}"
            )
        return locations

    async def list_reviews(self, location_name: str) -> list[Review]:
        reviews: list[Review] = []
        page_token = None
        while True:
            params = {"pageSize": self.reviews_page_size, "orderBy": "updateTime desc"}
            if page_token:
                params["pageToken"] = page_token

            data = await self._get(GOOGLE_REVIEWS_LIST_URL.format(parent=location_name), params=params)
            for raw in data.get("reviews") or []:
                try:
                    reviews.append(Review.model_validate(raw))
                except ValidationError as e:
                    logger.warning("Skipping unreadable review %s: %s", raw.get("reviewId"), e.errors()[:1])

            page_token = data.get("nextPageToken")
            if not page_token or len(reviews) >= self.max_reviews:
                break

        return reviews[: self.max_reviews]

    async def get_insights(self, location_name: str) -> Insights:
        end = self.today or date.today()
        start = end - timedelta(days=self.insights_days)
        params: list[tuple[str, Any]] = [
            ("dailyMetrics", m) for m in (*VIEW_METRICS, CLICK_METRIC, CALL_METRIC, DIRECTIONS_METRIC)
        ]
        params += [
            ("dailyRange.startDate.year", start.year),
            ("dailyRange.startDate.month", start.month),
            ("dailyRange.startDate.day", start.day),
            ("dailyRange.endDate.year", end.year),
            ("dailyRange.endDate.month", end.month),
            ("dailyRange.endDate.day", end.day),
        ]
        data = await self._get(GOOGLE_INSIGHTS_URL.format(location=location_id(location_name)), params=params)
        return sum_daily_metrics(data)
