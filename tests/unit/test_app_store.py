"""Unit tests for the App Store provider."""

from __future__ import annotations

from typing import Any, get_args

import httpx
import pytest
import respx

from appinsight.errors import AppInsightError, ErrorCode, RateLimitedError, UpstreamError
from appinsight.models.tools import AppStoreListInput
from appinsight.providers.app_store import (
    CHART_COLLECTIONS,
    AppStoreClient,
    parse_app,
    parse_chart_entry,
    parse_review,
)

BASE_URL = "https://itunes.apple.com"


def _itunes_app(track_id: int, bundle_id: str, **overrides: Any) -> dict[str, Any]:
    app = {
        "wrapperType": "software",
        "trackId": track_id,
        "bundleId": bundle_id,
        "trackName": f"App {track_id}",
        "trackViewUrl": f"https://apps.apple.com/app/id{track_id}",
        "artworkUrl100": "https://example.test/100.png",
        "price": 0.0,
        "currency": "USD",
        "artistId": 42,
        "artistName": "Example Inc.",
        "averageUserRating": 4.5,
        "userRatingCount": 1200,
        "genres": ["Games"],
        "releaseDate": "2020-01-01T00:00:00Z",
    }
    app.update(overrides)
    return app


def _review_entry(review_id: str, rating: str) -> dict[str, Any]:
    return {
        "id": {"label": review_id},
        "author": {"name": {"label": "someone"}, "uri": {"label": "https://example.test/u"}},
        "im:version": {"label": "1.2.3"},
        "im:rating": {"label": rating},
        "title": {"label": "Great"},
        "content": {"label": "Works well", "attributes": {"type": "text"}},
        "link": {"attributes": {"rel": "related", "href": "https://example.test/r"}},
        "updated": {"label": "2026-01-02T00:00:00-07:00"},
    }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseApp:
    def test_maps_fields(self) -> None:
        app = parse_app(_itunes_app(1, "com.example.one"))
        assert app["id"] == 1
        assert app["appId"] == "com.example.one"
        assert app["title"] == "App 1"
        assert app["icon"] == "https://example.test/100.png"
        assert app["free"] is True
        assert app["developer"] == "Example Inc."
        assert app["score"] == 4.5
        assert app["reviews"] == 1200
        # Falls back to the release date when no update date is present
        assert app["updated"] == "2020-01-01T00:00:00Z"

    def test_paid_app(self) -> None:
        assert parse_app(_itunes_app(1, "a.b", price=2.99))["free"] is False


class TestParseReview:
    def test_flattens_labels(self) -> None:
        review = parse_review(_review_entry("r1", "4"))
        assert review == {
            "id": "r1",
            "userName": "someone",
            "userUrl": "https://example.test/u",
            "version": "1.2.3",
            "score": 4,
            "title": "Great",
            "text": "Works well",
            "url": "https://example.test/r",
            "updated": "2026-01-02T00:00:00-07:00",
        }

    def test_missing_fields(self) -> None:
        review = parse_review({})
        assert review["score"] is None
        assert review["url"] is None

    @pytest.mark.parametrize("label", ["five", "", "4.5", None])
    def test_non_numeric_rating_gives_no_score(self, label: Any) -> None:
        review = parse_review({"im:rating": {"label": label}, "id": {"label": "r1"}})
        assert review["score"] is None
        assert review["id"] == "r1"


def _chart_entry(track_id: int, bundle_id: str, price: str = "0.00") -> dict[str, Any]:
    return {
        "im:name": {"label": f"App {track_id}"},
        "im:image": [
            {"label": "https://example.test/53.png", "attributes": {"height": "53"}},
            {"label": "https://example.test/100.png", "attributes": {"height": "100"}},
        ],
        "summary": {"label": "An app"},
        "im:price": {"label": "Get", "attributes": {"amount": price, "currency": "USD"}},
        "id": {
            "label": f"https://apps.apple.com/us/app/id{track_id}?uo=2",
            "attributes": {"im:id": str(track_id), "im:bundleId": bundle_id},
        },
        "im:artist": {
            "label": "Example Inc.",
            "attributes": {"href": "https://apps.apple.com/us/developer/id42?uo=2"},
        },
        "category": {"attributes": {"im:id": "6014", "label": "Games"}},
        "link": {"attributes": {"rel": "alternate", "href": f"https://example.test/{track_id}"}},
        "im:releaseDate": {"label": "2020-01-01T00:00:00-07:00"},
    }


class TestParseChartEntry:
    def test_maps_fields(self) -> None:
        app = parse_chart_entry(_chart_entry(7, "a.seven"))
        assert app["id"] == 7
        assert app["appId"] == "a.seven"
        assert app["title"] == "App 7"
        # Largest artwork is listed last
        assert app["icon"] == "https://example.test/100.png"
        assert app["url"] == "https://example.test/7"
        assert app["price"] == 0.0
        assert app["free"] is True
        assert app["developer"] == "Example Inc."
        assert app["developerId"] == "42"
        assert app["genre"] == "Games"
        assert app["genreId"] == "6014"
        assert app["released"] == "2020-01-01T00:00:00-07:00"

    def test_paid_app(self) -> None:
        app = parse_chart_entry(_chart_entry(7, "a.seven", price="4.99"))
        assert app["price"] == 4.99
        assert app["free"] is False

    def test_missing_fields(self) -> None:
        app = parse_chart_entry({})
        assert app["id"] is None
        assert app["price"] is None
        assert app["developerId"] is None

    def test_collections_match_tool_input(self) -> None:
        annotation = AppStoreListInput.model_fields["collection"].annotation
        assert get_args(annotation) == CHART_COLLECTIONS


# ---------------------------------------------------------------------------
# AppStoreClient
# ---------------------------------------------------------------------------


class TestSearch:
    async def test_search_params_and_results(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/search").mock(
                return_value=httpx.Response(
                    200, json={"results": [_itunes_app(1, "a.one"), _itunes_app(2, "a.two")]}
                )
            )
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).search("chess", num=2)
            params = route.calls.last.request.url.params
            assert params["term"] == "chess"
            assert params["entity"] == "software"
            assert params["limit"] == "2"
            assert params["lang"] == "en_us"
            assert [a["id"] for a in apps] == [1, 2]

    async def test_second_page_slices_results(self) -> None:
        results = [_itunes_app(i, f"a.{i}") for i in range(1, 5)]
        with respx.mock:
            route = respx.get(f"{BASE_URL}/search").mock(
                return_value=httpx.Response(200, json={"results": results})
            )
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).search("chess", num=2, page=2)
            assert route.calls.last.request.url.params["limit"] == "4"
            assert [a["id"] for a in apps] == [3, 4]

    async def test_page_beyond_cap_makes_no_request(self) -> None:
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.get(f"{BASE_URL}/search")
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).search("chess", num=100, page=3)
            assert apps == []
            assert route.call_count == 0


class TestDetails:
    async def test_by_id(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/lookup").mock(
                return_value=httpx.Response(200, json={"results": [_itunes_app(7, "a.seven")]})
            )
            async with httpx.AsyncClient() as http:
                app = await AppStoreClient(http, BASE_URL).details(id=7)
            params = route.calls.last.request.url.params
            assert params["id"] == "7"
            assert "bundleId" not in params
            assert "lang" not in params
            assert app["appId"] == "a.seven"

    async def test_by_bundle_id(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/lookup").mock(
                return_value=httpx.Response(200, json={"results": [_itunes_app(7, "a.seven")]})
            )
            async with httpx.AsyncClient() as http:
                app = await AppStoreClient(http, BASE_URL).details(app_id="a.seven")
            assert route.calls.last.request.url.params["bundleId"] == "a.seven"
            assert app["id"] == 7

    async def test_not_found(self) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/lookup").mock(
                return_value=httpx.Response(200, json={"resultCount": 0, "results": []})
            )
            async with httpx.AsyncClient() as http:
                with pytest.raises(AppInsightError) as exc_info:
                    await AppStoreClient(http, BASE_URL).details(id=999)
            assert exc_info.value.code == ErrorCode.APP_NOT_FOUND
            assert "999" in exc_info.value.message

    async def test_rate_limited(self) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/lookup").mock(return_value=httpx.Response(429))
            async with httpx.AsyncClient() as http:
                with pytest.raises(RateLimitedError):
                    await AppStoreClient(http, BASE_URL).details(id=1)

    async def test_server_error(self) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/lookup").mock(return_value=httpx.Response(503))
            async with httpx.AsyncClient() as http:
                with pytest.raises(UpstreamError) as exc_info:
                    await AppStoreClient(http, BASE_URL).details(id=1)
            assert "App Store" in exc_info.value.message
            assert exc_info.value.status_code == 503


class TestDeveloper:
    async def test_skips_artist_record(self) -> None:
        artist = {"wrapperType": "artist", "artistId": 42, "artistName": "Example Inc."}
        with respx.mock:
            respx.get(f"{BASE_URL}/lookup").mock(
                return_value=httpx.Response(
                    200,
                    json={"results": [artist, _itunes_app(1, "a.one"), _itunes_app(2, "a.two")]},
                )
            )
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).developer("42")
            assert [a["appId"] for a in apps] == ["a.one", "a.two"]


class TestReviews:
    async def test_by_id(self) -> None:
        url = f"{BASE_URL}/us/rss/customerreviews/page=2/id=7/sortby=mosthelpful/json"
        with respx.mock:
            route = respx.get(url).mock(
                return_value=httpx.Response(
                    200,
                    json={"feed": {"entry": [_review_entry("r1", "5"), _review_entry("r2", "1")]}},
                )
            )
            async with httpx.AsyncClient() as http:
                reviews = await AppStoreClient(http, BASE_URL).reviews(
                    id=7, page=2, sort="helpful"
                )
            assert route.call_count == 1
            assert [r["score"] for r in reviews] == [5, 1]

    async def test_bundle_id_resolved_first(self) -> None:
        url = f"{BASE_URL}/us/rss/customerreviews/page=1/id=7/sortby=mostrecent/json"
        with respx.mock:
            respx.get(f"{BASE_URL}/lookup").mock(
                return_value=httpx.Response(200, json={"results": [_itunes_app(7, "a.seven")]})
            )
            feed = respx.get(url).mock(
                return_value=httpx.Response(200, json={"feed": {"entry": _review_entry("r", "3")}})
            )
            async with httpx.AsyncClient() as http:
                reviews = await AppStoreClient(http, BASE_URL).reviews(app_id="a.seven")
            assert feed.call_count == 1
            assert len(reviews) == 1
            assert reviews[0]["id"] == "r"

    async def test_empty_feed(self) -> None:
        url = f"{BASE_URL}/us/rss/customerreviews/page=1/id=7/sortby=mostrecent/json"
        with respx.mock:
            respx.get(url).mock(return_value=httpx.Response(200, json={"feed": {}}))
            async with httpx.AsyncClient() as http:
                assert await AppStoreClient(http, BASE_URL).reviews(id=7) == []


class TestList:
    async def test_chart_by_genre(self) -> None:
        url = f"{BASE_URL}/us/rss/topgrossingapplications/genre=6014/limit=10/json"
        with respx.mock:
            route = respx.get(url).mock(
                return_value=httpx.Response(
                    200,
                    json={"feed": {"entry": [_chart_entry(1, "a.one"), _chart_entry(2, "a.two")]}},
                )
            )
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).list(
                    "topgrossingapplications", category=6014, num=10
                )
            assert route.call_count == 1
            assert [a["appId"] for a in apps] == ["a.one", "a.two"]

    async def test_single_entry_feed(self) -> None:
        url = f"{BASE_URL}/gb/rss/topfreeapplications/limit=50/json"
        with respx.mock:
            respx.get(url).mock(
                return_value=httpx.Response(200, json={"feed": {"entry": _chart_entry(3, "a.3")}})
            )
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).list(country="gb")
            assert [a["id"] for a in apps] == [3]

    async def test_full_detail_keeps_chart_order(self) -> None:
        url = f"{BASE_URL}/us/rss/toppaidapplications/limit=2/json"
        with respx.mock:
            respx.get(url).mock(
                return_value=httpx.Response(
                    200,
                    json={"feed": {"entry": [_chart_entry(2, "a.two"), _chart_entry(1, "a.one")]}},
                )
            )
            lookup = respx.get(f"{BASE_URL}/lookup").mock(
                return_value=httpx.Response(
                    200, json={"results": [_itunes_app(1, "a.one"), _itunes_app(2, "a.two")]}
                )
            )
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).list(
                    "toppaidapplications", num=2, full_detail=True
                )
            assert lookup.calls.last.request.url.params["id"] == "2,1"
            assert [a["id"] for a in apps] == [2, 1]
            # Full records carry the lookup-only fields
            assert apps[0]["reviews"] == 1200

    async def test_empty_chart_skips_lookup(self) -> None:
        url = f"{BASE_URL}/us/rss/newapplications/limit=5/json"
        with respx.mock(assert_all_called=False) as respx_mock:
            respx_mock.get(url).mock(return_value=httpx.Response(200, json={"feed": {}}))
            lookup = respx_mock.get(f"{BASE_URL}/lookup")
            async with httpx.AsyncClient() as http:
                apps = await AppStoreClient(http, BASE_URL).list(
                    "newapplications", num=5, full_detail=True
                )
            assert apps == []
            assert lookup.call_count == 0

    async def test_server_error(self) -> None:
        url = f"{BASE_URL}/us/rss/topfreeapplications/limit=50/json"
        with respx.mock:
            respx.get(url).mock(return_value=httpx.Response(500))
            async with httpx.AsyncClient() as http:
                with pytest.raises(UpstreamError):
                    await AppStoreClient(http, BASE_URL).list()
