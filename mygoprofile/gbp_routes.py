import logging
from collections.abc import Callable

import httpx
from fastapi import APIRouter, Depends, Query, Request

from mygoprofile.config import Settings
from mygoprofile.errors import ApiError, BusinessDataError, BusinessErrorKind
from mygoprofile.gbp_client import BusinessDataSource, GoogleBusinessDataSource
from mygoprofile.mock_gbp import MockBusinessDataSource
from mygoprofile.models import AccountsResponse, InsightsResponse, LocationsResponse, ReviewsResponse
from mygoprofile.session import Credential, require_credential

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/business", tags=["business"])

DataSourceFactory = Callable[[Credential], BusinessDataSource]

INSUFFICIENT_SCOPE_MESSAGE = (
    "Insufficient permissions. Please re-authenticate with Google Business Profile access."
)
AUTH_EXPIRED_MESSAGE = "Authentication expired. Please sign in again."


def build_data_source_factory(settings: Settings, http_client: httpx.AsyncClient) -> DataSourceFactory:
    """Pick the BusinessDataSource implementation named by BUSINESS_DATA_SOURCE."""
    if settings.business_data_source == "google":

        def google(credential: Credential) -> BusinessDataSource:
            return GoogleBusinessDataSource(
                access_token=credential.access_token,
                http_client=http_client,
                timeout=settings.google_api_timeout,
                reviews_page_size=settings.reviews_page_size,
                max_reviews=settings.max_reviews,
                insights_days=settings.insights_days,
            )

        return google

    def mock(credential: Credential) -> BusinessDataSource:
        return MockBusinessDataSource()

    return mock


def get_data_source(
    request: Request,
    credential: Credential = Depends(require_credential),
) -> BusinessDataSource:
    return request.app.state.data_source_factory(credential)


def require_param(value: str | None, label: str) -> str:
    v = (value or "").strip()
    if not v:
        raise ApiError(400, f"{label} is required")
    return v


def to_api_error(e: BusinessDataError, failure: str, not_found: str) -> ApiError:
    """The only place where a data source failure becomes an HTTP status."""
    if e.kind is BusinessErrorKind.INSUFFICIENT_SCOPE:
        return ApiError(403, INSUFFICIENT_SCOPE_MESSAGE)
    if e.kind is BusinessErrorKind.AUTH_EXPIRED:
        return ApiError(401, AUTH_EXPIRED_MESSAGE)
    if e.kind is BusinessErrorKind.NOT_FOUND:
        return ApiError(404, not_found)
    logger.error("%s: %r", failure, e)
    return ApiError(500, failure, details=e.message)


@router.get("/accounts", response_model=AccountsResponse, response_model_exclude_none=True)
async def list_accounts(source: BusinessDataSource = Depends(get_data_source)):
    try:
        accounts = await source.list_accounts()
    except BusinessDataError as e:
        raise to_api_error(e, "Failed to fetch business accounts", "No business accounts found") from e
    return AccountsResponse(accounts=accounts)


@router.get("/locations", response_model=LocationsResponse, response_model_exclude_none=True)
async def list_locations(
    source: BusinessDataSource = Depends(get_data_source),
    account_name: str | None = Query(None, alias="accountName"),
):
    account_name = require_param(account_name, "Account name")
    try:
        locations = await source.list_locations(account_name)
    except BusinessDataError as e:
        raise to_api_error(
            e, "Failed to fetch business locations", "Account not found or no locations available"
        ) from e
    return LocationsResponse(locations=locations)


@router.get("/reviews", response_model=ReviewsResponse, response_model_exclude_none=True)
async def list_reviews(
    source: BusinessDataSource = Depends(get_data_source),
    location_name: str | None = Query(None, alias="locationName"),
):
    location_name = require_param(location_name, "Location name")
    try:
        reviews = await source.list_reviews(location_name)
    except BusinessDataError as e:
        raise to_api_error(e, "Failed to fetch reviews", "Location not found") from e
    return ReviewsResponse(reviews=reviews)


@router.get("/insights", response_model=InsightsResponse)
async def get_insights(
    source: BusinessDataSource = Depends(get_data_source),
    location_name: str | None = Query(None, alias="locationName"),
):
    location_name = require_param(location_name, "Location name")
    try:
        insights = await source.get_insights(location_name)
    except BusinessDataError as e:
        raise to_api_error(e, "Failed to fetch business insights", "Location not found") from e
    return InsightsResponse(insights=insights)
