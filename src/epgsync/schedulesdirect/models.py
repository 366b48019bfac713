"""
Pydantic models, errors and constants for the SchedulesDirect listings integration.

Wire models keep the service's field names (programID, stationID, ...) so payloads
validate without aliases. Output records use snake_case and are what the rest of the
application consumes.
"""

from __future__ import annotations

import os
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SDBaseModel(BaseModel):
    """Base model with dict/json helpers used across the package."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_json(self, **kwargs: Any) -> str:
        return self.model_dump_json(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


# ----------------------------------------------------------
# Errors
# ----------------------------------------------------------


class SchedulesDirectError(Exception):
    """Base error for everything raised by the listings integration."""

    def __init__(self, message: str, code: int | None = None, raw_response: Any = None):
        super().__init__(message)
        self.code = code
        self.raw_response = raw_response


class SchedulesDirectConfigurationError(SchedulesDirectError, ValueError):
    """A required setting (username, password, listings id, channel id) is missing."""


class SchedulesDirectTransportError(SchedulesDirectError):
    """
    A request failed: non-2xx status, network error or a body of the wrong shape.

    status_code is None when no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: int | None = None,
        raw_response: Any = None,
    ):
        super().__init__(message, code=code, raw_response=raw_response)
        self.status_code = status_code


class SchedulesDirectAuthenticationError(SchedulesDirectTransportError):
    """The token call was rejected. status_code 400 means invalid credentials."""


class SchedulesDirectServiceUnavailableError(SchedulesDirectError):
    """
    Raised when an operation needs a token and none can be acquired.

    This happens while the authentication cool-down is active or when the account
    has no credentials configured.
    """


class SchedulesDirectContractError(SchedulesDirectError):
    """The service returned data that breaks its own contract (e.g. missing program details)."""


# ----------------------------------------------------------
# Provider configuration
# ----------------------------------------------------------


class ListingsProviderInfo(SDBaseModel):
    """Account settings supplied by the application with every call."""

    username: str | None = None
    password: str | None = None
    listings_id: str | None = Field(None, description="Lineup id, e.g. USA-NY67791-X")
    country: str | None = None
    zip_code: str | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.username.strip() and self.password)

    @classmethod
    def from_env(cls) -> ListingsProviderInfo:
        """Build provider info from SCHEDULES_DIRECT_* environment variables."""
        return cls(
            username=os.getenv("SCHEDULES_DIRECT_USERNAME"),
            password=os.getenv("SCHEDULES_DIRECT_PASSWORD"),
            listings_id=os.getenv("SCHEDULES_DIRECT_LINEUP"),
            country=os.getenv("SCHEDULES_DIRECT_COUNTRY", "USA"),
            zip_code=os.getenv("SCHEDULES_DIRECT_ZIP"),
        )


# ----------------------------------------------------------
# Token
# ----------------------------------------------------------


class SDTokenResponse(SDBaseModel):
    """Response from POST /token."""

    code: int | None = None
    message: str | None = None
    serverID: str | None = None
    token: str | None = None


# ----------------------------------------------------------
# Schedules
# ----------------------------------------------------------


class SDScheduleRequest(SDBaseModel):
    """One element of the POST /schedules body."""

    stationID: str
    date: list[str]


class SDScheduleProgram(SDBaseModel):
    """A single airing on one station."""

    programID: str
    airDateTime: str = Field(..., description="UTC start, yyyy-MM-ddTHH:mm:ssZ")
    duration: int = Field(0, description="Duration in seconds")
    md5: str | None = None
    audioProperties: list[str] | None = None
    videoProperties: list[str] | None = None
    new: bool | None = None
    liveTapeDelay: str | None = None
    premiere: bool = False
    isPremiereOrFinale: str | None = None


class SDStationSchedule(SDBaseModel):
    """Schedule for one station on one day."""

    stationID: str
    programs: list[SDScheduleProgram] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


# ----------------------------------------------------------
# Program details
# ----------------------------------------------------------


class SDProgramTitle(SDBaseModel):
    title120: str | None = None


class SDProgramDescription(SDBaseModel):
    descriptionLanguage: str | None = None
    description: str | None = None


class SDProgramDescriptions(SDBaseModel):
    description1000: list[SDProgramDescription] | None = Field(
        None, description="Long descriptions (up to 1000 chars)"
    )
    description100: list[SDProgramDescription] | None = Field(
        None, description="Short descriptions (up to 100 chars)"
    )


class SDContentRating(SDBaseModel):
    body: str | None = None
    code: str
    country: str | None = None


class SDGracenoteMetadata(SDBaseModel):
    season: int | None = None
    episode: int | None = None


class SDMetadataEntry(SDBaseModel):
    Gracenote: SDGracenoteMetadata | None = None


class SDMovieInfo(SDBaseModel):
    year: str | None = None
    duration: int | None = None


class SDProgramMetadata(SDBaseModel):
    """Program details from POST /programs, shared by all airings of a program id."""

    programID: str
    titles: list[SDProgramTitle] = Field(default_factory=list)
    entityType: str | None = Field(None, description="Episode, Movie, Sports, Show")
    showType: str | None = None
    audience: str | None = None
    episodeTitle150: str | None = None
    descriptions: SDProgramDescriptions | None = None
    contentRating: list[SDContentRating] | None = None
    genres: list[str] | None = None
    originalAirDate: str | None = Field(None, description="yyyy-MM-dd")
    movie: SDMovieInfo | None = None
    metadata: list[SDMetadataEntry] | None = None
    hasImageArtwork: bool = False
    md5: str | None = None


# ----------------------------------------------------------
# Artwork
# ----------------------------------------------------------


class SDImageData(SDBaseModel):
    """One artwork candidate. width/height arrive as strings and may be missing."""

    width: str | int | None = None
    height: str | int | None = None
    uri: str | None = None
    text: str | None = Field(None, description="'yes' if the image carries a title overlay")
    category: str | None = None
    aspect: str | None = None
    size: str | None = None


class SDProgramImages(SDBaseModel):
    """Response item from POST /metadata/programs, keyed by the 10-char program id root."""

    programID: str
    data: list[SDImageData] = Field(default_factory=list)
    code: int | None = None
    message: str | None = None


class ProgramImages(SDBaseModel):
    """Artwork chosen for a program id root."""

    primary: str | None = None
    thumb: str | None = None
    backdrop: str | None = None


# ----------------------------------------------------------
# Headends / lineups / stations
# ----------------------------------------------------------


class SDLineup(SDBaseModel):
    lineup: str
    name: str | None = None
    uri: str | None = None
    transport: str | None = None
    location: str | None = None
    modified: str | None = None
    isDeleted: bool | None = None


class SDHeadend(SDBaseModel):
    headend: str | None = None
    transport: str | None = None
    location: str | None = None
    lineups: list[SDLineup] = Field(default_factory=list)


class SDAccountLineups(SDBaseModel):
    """Response from GET /lineups."""

    code: int | None = None
    serverID: str | None = None
    lineups: list[SDLineup] = Field(default_factory=list)

    def has_lineup(self, lineup_id: str) -> bool:
        return any(item.lineup.lower() == lineup_id.lower() for item in self.lineups)


class SDStationLogo(SDBaseModel):
    URL: str | None = None
    height: int | None = None
    width: int | None = None
    md5: str | None = None


class SDStation(SDBaseModel):
    stationID: str
    name: str | None = None
    callsign: str | None = None
    affiliate: str | None = None
    logo: SDStationLogo | None = None


class SDChannelMapEntry(SDBaseModel):
    stationID: str
    channel: str | None = None
    logicalChannelNumber: str | None = None
    atscMajor: int | None = None
    atscMinor: int | None = None


class SDLineupChannels(SDBaseModel):
    """Response from GET /lineups/{lineupId}."""

    map: list[SDChannelMapEntry] = Field(default_factory=list)
    stations: list[SDStation] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


# ----------------------------------------------------------
# Output records
# ----------------------------------------------------------


class ProgramAudio(str, Enum):
    MONO = "Mono"
    STEREO = "Stereo"
    DOLBY_DIGITAL = "DolbyDigital"
    ATMOS = "Atmos"


class ProgramRecord(SDBaseModel):
    """A single airing merged from schedule, program details and artwork."""

    id: str = Field(..., description="programId + 'T' + start ticks + 'C' + channel id")
    channel_id: str
    name: str
    episode_title: str | None = None
    overview: str | None = None
    start_date: datetime
    end_date: datetime
    audio: ProgramAudio = ProgramAudio.STEREO
    official_rating: str | None = None
    genres: list[str] = Field(default_factory=list)
    show_id: str
    series_id: str | None = None
    series_provider_ids: dict[str, str] = Field(default_factory=dict)
    season_number: int | None = None
    episode_number: int | None = None
    original_air_date: datetime | None = None
    production_year: int | None = None
    is_series: bool = False
    is_movie: bool = False
    is_sports: bool = False
    is_kids: bool = False
    is_news: bool = False
    is_repeat: bool = False
    is_live: bool = False
    is_premiere: bool = False
    is_hd: bool | None = None
    is_3d: bool | None = None
    etag: str | None = None
    image_url: str | None = None
    thumb_image_url: str | None = None
    backdrop_image_url: str | None = None


class ChannelRecord(SDBaseModel):
    """A lineup channel joined with its station metadata."""

    id: str
    number: str
    name: str
    call_sign: str | None = None
    image_url: str | None = None


class LineupOption(SDBaseModel):
    """A lineup offered for a country/postal code."""

    id: str
    name: str
