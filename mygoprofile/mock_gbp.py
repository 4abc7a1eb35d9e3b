"""In-memory BusinessDataSource with fixed sample data."""

import logging
from dataclasses import dataclass, field

from mygoprofile.errors import BusinessDataError, BusinessErrorKind
from mygoprofile.gbp_client import BusinessDataSource
from mygoprofile.models import Account, Insights, Location, PostalAddress, Review

logger = logging.getLogger(__name__)

SAMPLE_ACCOUNT = "accounts/123456789"
SAMPLE_LOCATION = "accounts/123456789/locations/987654321"


def sample_accounts() -> list[Account]:
    return [
        Account(
            name=SAMPLE_ACCOUNT,
            account_name="My Business Account",
            type="PERSONAL",
            verification_state="VERIFIED",
        )
    ]


def sample_locations() -> dict[str, list[Location]]:
    return {
        SAMPLE_ACCOUNT: [
            Location(
                name=SAMPLE_LOCATION,
                title="My Business Location",
                address=PostalAddress(
                    address_lines=["123 Main St"],
                    locality="City",
                    region="State",
                    postal_code="12345",
                    country="US",
                ),
                primary_phone="+1-555-123-4567",
                website_uri="https://mybusiness.com",
            )
        ]
    }


def sample_reviews() -> dict[str, list[Review]]:
    raw = [
        {
            "name": f"{SAMPLE_LOCATION}/reviews/1",
            "reviewId": "1",
            "reviewer": {"displayName": "John Doe", "profilePhotoUrl": "https://via.placeholder.com/40"},
            "starRating": "FIVE",
            "comment": "Great service! Highly recommend.",
            "createTime": "2024-01-15T10:30:00Z",
            "updateTime": "2024-01-15T10:30:00Z",
        },
        {
            "name": f"{SAMPLE_LOCATION}/reviews/2",
            "reviewId": "2",
            "reviewer": {"displayName": "Jane Smith", "profilePhotoUrl": "https://via.placeholder.com/40"},
            "starRating": "FOUR",
            "comment": "Good experience overall.",
            "createTime": "2024-01-10T14:20:00Z",
            "updateTime": "2024-01-10T14:20:00Z",
            "reviewReply": {
                "comment": "Thanks Jane, see you soon!",
                "updateTime": "2024-01-11T09:00:00Z",
            },
        },
    ]
    return {SAMPLE_LOCATION: [Review.model_validate(r) for r in raw]}


def sample_insights() -> dict[str, Insights]:
    return {
        SAMPLE_LOCATION: Insights(
            total_views=1250,
            total_clicks=89,
            total_calls=23,
            total_direction_requests=45,
        )
    }


@dataclass
class MockBusinessDataSource(BusinessDataSource):
    """Deterministic data source; ``error`` makes every call fail with it."""

    accounts: list[Account] = field(default_factory=sample_accounts)
    locations: dict[str, list[Location]] = field(default_factory=sample_locations)
    reviews: dict[str, list[Review]] = field(default_factory=sample_reviews)
    insights: dict[str, Insights] = field(default_factory=sample_insights)
    error: BusinessDataError | None = None
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    def _record(self, op: str, arg: str | None = None) -> None:
        self.calls.append((op, arg))
        logger.debug("Mock %s(%s)", op, arg or "")
        if self.error is not None:
            raise self.error

    async def list_accounts(self) -> list[Account]:
        self._record("list_accounts")
        return list(self.accounts)

    async def list_locations(self, account_name: str) -> list[Location]:
        self._record("list_locations", account_name)
        locations = self.locations.get(account_name)
        if not locations:
            raise BusinessDataError(BusinessErrorKind.NOT_FOUND, f"No locations found for {account_name}")
        return list(locations)

    async def list_reviews(self, location_name: str) -> list[Review]:
        self._record("list_reviews", location_name)
        if location_name not in self.reviews:
            raise BusinessDataError(BusinessErrorKind.NOT_FOUND, f"Location {location_name} not found")
        return list(self.reviews[location_name])

    async def get_insights(self, location_name: str) -> Insights:
        self._record("get_insights", location_name)
        if location_name not in self.insights:
            raise BusinessDataError(BusinessErrorKind.NOT_FOUND, f"Location {location_name} not found")
        return self.insights[location_name]
