"""
Utility functions for converting SchedulesDirect payloads into program and channel records.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from epgsync.schedulesdirect.models import (
    ChannelRecord,
    ProgramAudio,
    ProgramImages,
    ProgramRecord,
    SDChannelMapEntry,
    SDLineupChannels,
    SDProgramMetadata,
    SDScheduleProgram,
    SDStation,
)
from epgsync.utils.get_logger import get_logger

logger = get_logger(__name__)

PROGRAM_ID_ROOT_LENGTH = 10
SERIES_PREFIX = "SH"
# SchedulesDirect marks generic, unidentified episodes as SH + root + "0000"
GENERIC_EPISODE_SUFFIX = "0000"
SERIES_MIN_ID_LENGTH = 14

PLACEHOLDER_RATINGS = {"n/a", "n-a", "approved", "not rated", "passed"}

_TICKS_EPOCH = datetime(1, 1, 1, tzinfo=UTC)
_AIR_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def program_id_root(program_id: str) -> str:
    return program_id[:PROGRAM_ID_ROOT_LENGTH]


def parse_air_datetime(value: str) -> datetime:
    """Parse a schedule airDateTime (always UTC, second precision)."""
    return datetime.strptime(value, _AIR_DATE_FORMAT).replace(tzinfo=UTC)


def to_ticks(value: datetime) -> int:
    """100ns intervals since 0001-01-01, the unit stored in program ids."""
    delta = value.astimezone(UTC) - _TICKS_EPOCH
    return (delta.days * 86_400 + delta.seconds) * 10_000_000 + delta.microseconds * 10


def build_program_id(program_id: str, start: datetime, channel_id: str) -> str:
    return f"{program_id}T{to_ticks(start)}C{channel_id}"


def is_generic_show_id(program_id: str) -> bool:
    # TODO: revisit once SchedulesDirect documents its current generic-episode id format
    return program_id.upper().startswith(SERIES_PREFIX) and program_id.endswith(
        GENERIC_EPISODE_SUFFIX
    )


def get_show_id(program_id: str, record_id: str) -> str:
    """Series grouping key: the id root, or the airing id for generic episodes."""
    if is_generic_show_id(program_id):
        return record_id
    return program_id_root(program_id)


def get_audio_type(audio_properties: list[str] | None) -> ProgramAudio:
    if audio_properties is None:
        return ProgramAudio.STEREO

    props = {p.lower() for p in audio_properties if p}
    if "atmos" in props:
        return ProgramAudio.ATMOS
    if "dd 5.1" in props or "dd" in props:
        return ProgramAudio.DOLBY_DIGITAL
    if "stereo" in props:
        return ProgramAudio.STEREO
    return ProgramAudio.MONO


def normalize_rating(details: SDProgramMetadata) -> str | None:
    if not details.contentRating:
        return None

    rating = details.contentRating[0].code.replace("TV", "TV-").replace("--", "-")
    if rating.lower() in PLACEHOLDER_RATINGS:
        return None
    return rating


def get_overview(details: SDProgramMetadata) -> str | None:
    descriptions = details.descriptions
    if descriptions is None:
        return None
    for candidates in (descriptions.description1000, descriptions.description100):
        if candidates and candidates[0].description:
            return candidates[0].description
    return None


def get_season_episode(details: SDProgramMetadata) -> tuple[int | None, int | None]:
    for entry in details.metadata or []:
        gracenote = entry.Gracenote
        if gracenote is not None:
            episode = gracenote.episode if gracenote.episode and gracenote.episode > 0 else None
            return gracenote.season, episode
    return None, None


def _parse_year(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_original_air_date(value: str | None) -> datetime | None:
    if not value or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").replace(tzinfo=UTC)
    except ValueError:
        logger.debug(f"Unparseable originalAirDate: {value}")
        return None


def _contains(values: list[str] | None, target: str) -> bool:
    return any((v or "").lower() == target for v in values or [])


def create_program_record(
    channel_id: str,
    schedule: SDScheduleProgram,
    details: SDProgramMetadata,
    images: ProgramImages | None = None,
) -> ProgramRecord:
    """
    Merge one schedule entry with its program details and selected artwork.

    Args:
        channel_id: Normalized station id the airing belongs to
        schedule: The airing from /schedules
        details: The matching record from /programs
        images: Artwork selected for the program id root, if any

    Returns:
        ProgramRecord keyed by program id, start ticks and channel id
    """
    program_id = schedule.programID or ""
    start = parse_air_datetime(schedule.airDateTime)
    end = start + timedelta(seconds=schedule.duration)
    record_id = build_program_id(program_id, start, channel_id)

    entity_type = (details.entityType or "").lower()
    genres = [g for g in details.genres or [] if g and g.strip()]

    is_series = entity_type == "episode" or (
        program_id.upper().startswith(SERIES_PREFIX) and len(program_id) >= SERIES_MIN_ID_LENGTH
    )

    original_air_date = _parse_original_air_date(details.originalAirDate)
    production_year = original_air_date.year if original_air_date else None
    movie_year = _parse_year(details.movie.year if details.movie else None)
    if movie_year is not None:
        production_year = movie_year

    record = ProgramRecord(
        id=record_id,
        channel_id=channel_id,
        name=(details.titles[0].title120 if details.titles else None) or "Unknown",
        episode_title=details.episodeTitle150,
        overview=get_overview(details),
        start_date=start,
        end_date=end,
        audio=get_audio_type(schedule.audioProperties),
        official_rating=normalize_rating(details),
        genres=genres,
        show_id=get_show_id(program_id, record_id),
        original_air_date=original_air_date,
        production_year=production_year,
        is_series=is_series,
        is_movie=entity_type == "movie",
        is_sports=entity_type == "sports",
        is_kids=(details.audience or "").lower() == "children" or _contains(genres, "children"),
        is_news=_contains(genres, "news"),
        is_repeat=not schedule.new,
        is_live=(schedule.liveTapeDelay or "").lower() == "live",
        is_premiere=schedule.premiere
        or "premiere" in (schedule.isPremiereOrFinale or "").lower(),
        etag=schedule.md5,
    )

    if schedule.videoProperties is not None:
        record.is_hd = _contains(schedule.videoProperties, "hdtv")
        record.is_3d = _contains(schedule.videoProperties, "3d")

    if is_series:
        record.series_id = program_id_root(program_id)
        record.series_provider_ids["Zap2It"] = record.series_id
        record.season_number, record.episode_number = get_season_episode(details)

    if images is not None:
        record.image_url = images.primary
        record.thumb_image_url = images.thumb
        record.backdrop_image_url = images.backdrop

    return record


# ----------------------------------------------------------
# Channels
# ----------------------------------------------------------


def get_channel_number(entry: SDChannelMapEntry) -> str:
    """logicalChannelNumber, then channel, then "{atscMajor}.{atscMinor}"; leading zeros dropped."""
    number = entry.logicalChannelNumber
    if not number or not number.strip():
        number = entry.channel
    if not number or not number.strip():
        major = entry.atscMajor if entry.atscMajor is not None else ""
        minor = entry.atscMinor if entry.atscMinor is not None else ""
        number = f"{major}.{minor}"
    return number.lstrip("0")


def create_channel_records(lineup: SDLineupChannels) -> list[ChannelRecord]:
    """One channel record per map entry; unmatched stations get an id-only station."""
    stations: dict[str, SDStation] = {}
    for station in lineup.stations:
        stations.setdefault(station.stationID.lower(), station)

    records: list[ChannelRecord] = []

    for entry in lineup.map:
        number = get_channel_number(entry)
        station = stations.get(entry.stationID.lower()) or SDStation(stationID=entry.stationID)

        records.append(
            ChannelRecord(
                id=station.stationID,
                number=number,
                name=station.name if station.name and station.name.strip() else number,
                call_sign=station.callsign,
                image_url=station.logo.URL if station.logo else None,
            )
        )

    return records
