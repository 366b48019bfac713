"""Pytest configuration and fixtures for SchedulesDirect tests."""

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from epgsync.config import SCHEDULES_DIRECT_API_URL
from epgsync.schedulesdirect.auth import SchedulesDirectAuth, TokenStore
from epgsync.schedulesdirect.core import SchedulesDirectService
from epgsync.schedulesdirect.models import ListingsProviderInfo
from epgsync.schedulesdirect.transport import SchedulesDirectTransport
from epgsync.schedulesdirect.wrappers import SchedulesDirectWrapper


class FakeClock:
    """Controllable UTC clock for token age and cool-down tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeSDApi:
    """
    Stands in for BaseAPIClient._core_async_request.

    Responses are queued per (method, path); the last queued response repeats.
    An Exception instance in the queue is raised instead of returned.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, method: str, path: str, data: Any = None, status: int = 200) -> None:
        self.routes.setdefault((method, path), []).append((data, status))

    def add_error(self, method: str, path: str, error: BaseException) -> None:
        self.routes.setdefault((method, path), []).append(error)

    def calls_to(self, path: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["path"] == path]

    async def __call__(
        self,
        method: str,
        url: str,
        json_body: Any = None,
        headers: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: int | None = None,
    ) -> tuple[Any, int]:
        path = url.removeprefix(SCHEDULES_DIRECT_API_URL)
        self.calls.append(
            {
                "method": method,
                "path": path,
                "json": json_body,
                "headers": dict(headers or {}),
                "params": params,
            }
        )
        queue = self.routes.get((method, path))
        if not queue:
            return {"code": 404, "message": "not found"}, 404
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_store(clock):
    return TokenStore(clock=clock)


@pytest.fixture
def sd_api():
    api = FakeSDApi()
    api.add("POST", "/token", {"code": 0, "message": "OK", "token": "token-1"})
    return api


@pytest.fixture
def auth(token_store, sd_api, monkeypatch):
    sd_auth = SchedulesDirectAuth(store=token_store)
    monkeypatch.setattr(sd_auth, "_core_async_request", sd_api)
    return sd_auth


@pytest.fixture
def transport(auth, sd_api, monkeypatch):
    sd_transport = SchedulesDirectTransport(auth)
    monkeypatch.setattr(sd_transport, "_core_async_request", sd_api)
    return sd_transport


@pytest.fixture
def service(auth, transport):
    return SchedulesDirectService(auth=auth, transport=transport)


@pytest.fixture
def wrapper(service):
    return SchedulesDirectWrapper(service=service, local_tz=UTC)


@pytest.fixture
def provider_info():
    return ListingsProviderInfo(
        username="test_user",
        password="test_password",
        listings_id="USA-NY67791-X",
    )


@pytest.fixture
def mock_schedule_response():
    """Two days of airings on station 20454; EP0000012345 airs twice."""
    return [
        {
            "stationID": "20454",
            "programs": [
                {
                    "programID": "EP000001234501",
                    "airDateTime": "2024-01-01T23:00:00Z",
                    "duration": 1800,
                    "md5": "abc123",
                    "audioProperties": ["stereo", "cc"],
                    "videoProperties": ["hdtv"],
                    "new": True,
                    "liveTapeDelay": "Live",
                },
                {
                    "programID": "MV000000990000",
                    "airDateTime": "2024-01-01T23:30:00Z",
                    "duration": 7200,
                    "md5": "def456",
                    "audioProperties": ["DD 5.1"],
                },
            ],
            "metadata": {"date": "2024-01-01"},
        },
        {
            "stationID": "20454",
            "programs": [
                {
                    "programID": "EP000001234501",
                    "airDateTime": "2024-01-02T01:30:00Z",
                    "duration": 1800,
                    "md5": "ghi789",
                    "isPremiereOrFinale": "Season Premiere",
                },
                {
                    "programID": "SH005316560000",
                    "airDateTime": "2024-01-02T02:00:00Z",
                    "duration": 3600,
                    "md5": "jkl012",
                },
            ],
            "metadata": {"date": "2024-01-02"},
        },
    ]


@pytest.fixture
def mock_program_metadata():
    return [
        {
            "programID": "EP000001234501",
            "titles": [{"title120": "The Test Show"}],
            "entityType": "Episode",
            "episodeTitle150": "Pilot",
            "descriptions": {
                "description100": [{"descriptionLanguage": "en", "description": "Short."}],
                "description1000": [
                    {"descriptionLanguage": "en", "description": "A longer description."}
                ],
            },
            "contentRating": [{"body": "USA Parental Rating", "code": "TVPG", "country": "USA"}],
            "genres": ["Drama"],
            "originalAirDate": "2020-01-01",
            "metadata": [{"Gracenote": {"season": 2, "episode": 5}}],
            "hasImageArtwork": True,
        },
        {
            "programID": "MV000000990000",
            "titles": [{"title120": "A Movie"}],
            "entityType": "Movie",
            "descriptions": {
                "description100": [{"descriptionLanguage": "en", "description": "Short movie."}]
            },
            "contentRating": [{"body": "MPAA", "code": "Not Rated", "country": "USA"}],
            "genres": ["Children", ""],
            "movie": {"year": "1999", "duration": 7200},
            "originalAirDate": "2001-05-05",
            "hasImageArtwork": False,
        },
        {
            "programID": "SH005316560000",
            "titles": [{"title120": "Paid Programming"}],
            "entityType": "Show",
            "genres": ["News"],
            "hasImageArtwork": True,
        },
    ]


@pytest.fixture
def mock_image_metadata():
    return [
        {
            "programID": "EP00000123",
            "data": [
                {"width": "240", "height": "360", "uri": "assets/p1_v_h.jpg", "text": "yes"},
                {"width": "1920", "height": "1080", "uri": "assets/p1_h_t.jpg", "text": "yes"},
                {
                    "width": "1280",
                    "height": "720",
                    "uri": "https://cdn.example.com/p1_bd.jpg",
                    "text": "no",
                },
            ],
        },
        {
            "programID": "SH00531656",
            "data": {"errorCode": 5000, "errorMessage": "No artwork"},
        },
    ]


@pytest.fixture
def mock_lineup_channels():
    return {
        "map": [
            {"stationID": "20454", "channel": "002"},
            {"stationID": "10021", "logicalChannelNumber": "07", "channel": "999"},
            {"stationID": "99999", "atscMajor": 4, "atscMinor": 1},
        ],
        "stations": [
            {
                "stationID": "20454",
                "name": "WCBS",
                "callsign": "WCBS",
                "logo": {"URL": "https://logos.example.com/wcbs.png", "height": 270, "width": 360},
            },
            {"stationID": "10021", "name": "  ", "callsign": "AMC"},
        ],
        "metadata": {"lineup": "USA-NY67791-X", "modified": "2024-01-01T00:00:00Z"},
    }


@pytest.fixture
def mock_headends_response():
    return [
        {
            "headend": "NY67791",
            "transport": "Cable",
            "location": "New York",
            "lineups": [
                {
                    "name": "Cablevision - Digital",
                    "lineup": "USA-NY67791-X",
                    "uri": "/20141201/lineups/USA-NY67791-X",
                },
                {"name": "", "lineup": "USA-NY67791-L", "uri": "/20141201/lineups/USA-NY67791-L"},
            ],
        },
        {
            "headend": "0000001",
            "transport": "Antenna",
            "location": "10001",
            "lineups": [
                {
                    "name": "Antenna",
                    "lineup": "USA-OTA-10001",
                    "uri": "/20141201/lineups/USA-OTA-10001",
                }
            ],
        },
    ]
