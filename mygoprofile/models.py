from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Read-only projection of an upstream entity, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Account(WireModel):
    name: str = Field(..., description="Resource name, e.g. accounts/123")
    account_name: str | None = None
    type: str | None = None
    verification_state: str | None = None


class PostalAddress(WireModel):
    address_lines: list[str] = Field(default_factory=list)
    locality: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def street(self) -> str:
        return ", ".join(line for line in self.address_lines if line)

    def city_line(self) -> str:
        head = ", ".join(p for p in (self.locality, self.region) if p)
        return " ".join(p for p in (head, self.postal_code or "") if p)


class Location(WireModel):
    name: str = Field(..., description="Resource name, e.g. accounts/123/locations/456")
    title: str
    address: PostalAddress | None = None
    primary_phone: str | None = None
    website_uri: str | None = None


class StarRating(str, Enum):
    ONE = "ONE"
    TWO = "TWO"
    THREE = "THREE"
    FOUR = "FOUR"
    FIVE = "FIVE"

    @property
    def stars(self) -> int:
        return _STARS[self.value]


_STARS = {"ONE": 1, "TWO": 2, "THREE": 3, "FOUR": 4, "FIVE": 5}


class Reviewer(WireModel):
    display_name: str | None = None
    profile_photo_url: str | None = None
    is_anonymous: bool = False


class ReviewReply(WireModel):
    comment: str
    update_time: datetime | None = None


class Review(WireModel):
    name: str | None = None
    review_id: str
    reviewer: Reviewer = Field(default_factory=Reviewer)
    star_rating: StarRating
    comment: str | None = None
    create_time: datetime
    update_time: datetime | None = None
    review_reply: ReviewReply | None = None

    def stars_display(self) -> str:
        n = self.star_rating.stars
        return "★" * n + "☆" * (5 - n)


class Insights(WireModel):
    total_views: int = 0
    total_clicks: int = 0
    total_calls: int = 0
    total_direction_requests: int = 0


class AccountsResponse(WireModel):
    accounts: list[Account]


class LocationsResponse(WireModel):
    locations: list[Location]


class ReviewsResponse(WireModel):
    reviews: list[Review]


class InsightsResponse(WireModel):
    insights: Insights
