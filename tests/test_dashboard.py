"""Tests for the view data loaders."""

import asyncio

import httpx

from mygoprofile.dashboard import Err, Ok, ProxyReader, load_dashboard, load_reviews


def _account(name: str) -> dict[str, str]:
    return {"name": name, "accountName": name}


def _location(name: str, title: str) -> dict[str, str]:
    return {"name": name, "title": title}


def _reader(routes: dict[str, httpx.Response], seen: list[httpx.Request] | None = None) -> ProxyReader:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        key = request.url.path
        for param in ("accountName", "locationName"):
            if param in request.url.params:
                key = f"{key}?{request.url.params[param]}"
        return routes.get(key, httpx.Response(404, json={"error": "Not found"}))

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://dashboard")
    return ProxyReader(client)


def test_zero_accounts_means_no_location_fetches_and_empty_state() -> None:
    seen: list[httpx.Request] = []
    reader = _reader({"/api/business/accounts": httpx.Response(200, json={"accounts": []})}, seen)

    view = asyncio.run(load_dashboard(reader))

    assert view.empty
    assert view.error is None
    assert view.location_fetches == 0
    assert [r.url.path for r in seen] == ["/api/business/accounts"]


def test_locations_of_every_account_in_account_order() -> None:
    reader = _reader(
        {
            "/api/business/accounts": httpx.Response(
                200, json={"accounts": [_account("accounts/1"), _account("accounts/2"), _account("accounts/3")]}
            ),
            "/api/business/locations?accounts/1": httpx.Response(
                200, json={"locations": [_location("accounts/1/locations/a", "A")]}
            ),
            "/api/business/locations?accounts/2": httpx.Response(404, json={"error": "Account not found"}),
            "/api/business/locations?accounts/3": httpx.Response(
                200,
                json={
                    "locations": [
                        _location("accounts/3/locations/b", "B"),
                        _location("accounts/3/locations/c", "C"),
                    ]
                },
            ),
        }
    )

    view = asyncio.run(load_dashboard(reader, concurrency=2))

    assert view.location_fetches == 3
    assert [loc.title for loc in view.locations] == ["A", "B", "C"]
    assert not view.empty


def test_accounts_failure_is_a_soft_error() -> None:
    seen: list[httpx.Request] = []
    reader = _reader({"/api/business/accounts": httpx.Response(401, json={"error": "Unauthorized"})}, seen)

    view = asyncio.run(load_dashboard(reader))

    assert view.error == "Unauthorized"
    assert not view.empty
    assert len(seen) == 1


def test_reader_results_are_tagged() -> None:
    reader = _reader(
        {
            "/api/business/accounts": httpx.Response(200, json={"accounts": []}),
            "/api/business/reviews": httpx.Response(502, text="<html>bad gateway</html>"),
        }
    )

    assert asyncio.run(reader.get("/api/business/accounts")) == Ok({"accounts": []})
    assert asyncio.run(reader.get("/api/business/reviews")) == Err(502, "Request failed (502)")


def test_reader_transport_failure_is_soft() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    reader = ProxyReader(httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://dashboard"))

    result = asyncio.run(reader.get("/api/business/accounts"))

    assert isinstance(result, Err)
    assert result.status_code == 0


def test_load_reviews_with_insights() -> None:
    loc = "accounts/1/locations/2"
    reader = _reader(
        {
            f"/api/business/reviews?{loc}": httpx.Response(
                200,
                json={
                    "reviews": [
                        {
                            "reviewId": "1",
                            "reviewer": {"displayName": "John Doe"},
                            "starRating": "FIVE",
                            "comment": "Great",
                            "createTime": "2024-01-15T10:30:00Z",
                        }
                    ]
                },
            ),
            f"/api/business/insights?{loc}": httpx.Response(200, json={"insights": {"totalViews": 7}}),
        }
    )

    view = asyncio.run(load_reviews(reader, loc, "Shop"))

    assert view.error is None
    assert [r.reviewer.display_name for r in view.reviews] == ["John Doe"]
    assert view.insights is not None
    assert view.insights.total_views == 7


def test_load_reviews_failure_keeps_page_alive() -> None:
    loc = "accounts/1/locations/2"
    reader = _reader(
        {
            f"/api/business/reviews?{loc}": httpx.Response(
                403, json={"error": "Insufficient permissions. Please re-authenticate."}
            ),
        }
    )

    view = asyncio.run(load_reviews(reader, loc, "Shop"))

    assert view.error == "Insufficient permissions. Please re-authenticate."
    assert view.needs_sign_in
    assert view.reviews == []
    assert view.insights is None
    assert not view.empty


def test_load_reviews_empty_state() -> None:
    loc = "accounts/1/locations/2"
    reader = _reader({f"/api/business/reviews?{loc}": httpx.Response(200, json={"reviews": []})})

    view = asyncio.run(load_reviews(reader, loc, "Shop"))

    assert view.empty


def test_failed_location_calls_are_an_error_not_an_empty_state() -> None:
    reader = _reader(
        {
            "/api/business/accounts": httpx.Response(200, json={"accounts": [_account("accounts/1")]}),
            "/api/business/locations?accounts/1": httpx.Response(
                500, json={"error": "Failed to fetch business locations", "details": "backendError"}
            ),
        }
    )

    view = asyncio.run(load_dashboard(reader))

    assert view.error == "Failed to fetch business locations"
    assert view.error_status == 500
    assert not view.empty
    assert not view.needs_sign_in


def test_expired_token_on_locations_asks_for_sign_in() -> None:
    reader = _reader(
        {
            "/api/business/accounts": httpx.Response(
                200, json={"accounts": [_account("accounts/1"), _account("accounts/2")]}
            ),
            "/api/business/locations?accounts/1": httpx.Response(404, json={"error": "Account not found"}),
            "/api/business/locations?accounts/2": httpx.Response(
                401, json={"error": "Authentication expired. Please sign in again."}
            ),
        }
    )

    view = asyncio.run(load_dashboard(reader))

    assert view.error == "Authentication expired. Please sign in again."
    assert view.needs_sign_in
    assert not view.empty


def test_partial_location_failure_still_shows_loaded_locations() -> None:
    reader = _reader(
        {
            "/api/business/accounts": httpx.Response(
                200, json={"accounts": [_account("accounts/1"), _account("accounts/2")]}
            ),
            "/api/business/locations?accounts/1": httpx.Response(500, json={"error": "Failed"}),
            "/api/business/locations?accounts/2": httpx.Response(
                200, json={"locations": [_location("accounts/2/locations/a", "A")]}
            ),
        }
    )

    view = asyncio.run(load_dashboard(reader))

    assert view.error is None
    assert [loc.title for loc in view.locations] == ["A"]


def test_only_missing_locations_everywhere_is_the_empty_state() -> None:
    reader = _reader(
        {
            "/api/business/accounts": httpx.Response(200, json={"accounts": [_account("accounts/1")]}),
            "/api/business/locations?accounts/1": httpx.Response(404, json={"error": "Account not found"}),
        }
    )

    view = asyncio.run(load_dashboard(reader))

    assert view.empty
    assert view.error is None
