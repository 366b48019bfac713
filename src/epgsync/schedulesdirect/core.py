"""
Core service for the SchedulesDirect JSON API endpoints used by the listings sync.

Every method takes the provider info and the token acquired by the caller; the
transport handles the token header and the single refresh-and-retry.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from epgsync.schedulesdirect.auth import SchedulesDirectAuth
from epgsync.schedulesdirect.models import (
    ListingsProviderInfo,
    SchedulesDirectTransportError,
    SDAccountLineups,
    SDHeadend,
    SDImageData,
    SDLineupChannels,
    SDProgramImages,
    SDProgramMetadata,
    SDScheduleRequest,
    SDStationSchedule,
)
from epgsync.schedulesdirect.transport import SchedulesDirectTransport
from epgsync.schedulesdirect.utils import program_id_root
from epgsync.utils.get_logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _validate(model: type[ModelT], payload: Any, endpoint: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise SchedulesDirectTransportError(
            f"{endpoint} returned a malformed {model.__name__}: {e}", raw_response=payload
        ) from e


def _expect_list(response: Any, endpoint: str) -> list[Any]:
    if not isinstance(response, list):
        raise SchedulesDirectTransportError(
            f"{endpoint} expected list, got {type(response).__name__}", raw_response=response
        )
    return response


class SchedulesDirectService:
    """Thin, typed wrappers around the SchedulesDirect endpoints."""

    def __init__(
        self,
        auth: SchedulesDirectAuth | None = None,
        transport: SchedulesDirectTransport | None = None,
    ):
        self.auth = auth or SchedulesDirectAuth()
        self.transport = transport or SchedulesDirectTransport(self.auth)

    # ----------------------------------------------------------
    # Schedules
    # ----------------------------------------------------------
    @staticmethod
    def get_schedule_request_dates(
        start_date_utc: datetime,
        end_date_utc: datetime,
        local_tz: tzinfo | None = None,
    ) -> list[str]:
        """
        Inclusive yyyy-MM-dd list covering the range read both as UTC and as local time.

        Each boundary is compared by wall-clock value in both zones so a range that crosses
        midnight in only one of them still requests every day it touches.
        """

        def wall_clocks(value: datetime) -> list[datetime]:
            utc_value = value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)
            local_value = utc_value.astimezone(local_tz)
            return [utc_value.replace(tzinfo=None), local_value.replace(tzinfo=None)]

        start = min(wall_clocks(start_date_utc)).date()
        end = max(wall_clocks(end_date_utc)).date()

        dates = []
        current = start
        while current <= end:
            dates.append(current.isoformat())
            current += timedelta(days=1)
        return dates

    async def get_station_schedules(
        self,
        info: ListingsProviderInfo,
        token: str,
        station_id: str,
        dates: list[str],
    ) -> list[SDStationSchedule]:
        """POST /schedules for one station over the given dates."""
        payload = [SDScheduleRequest(stationID=station_id, date=dates).model_dump()]
        logger.debug(f"Schedule request: {payload}")

        response = await self.transport.send(
            "POST", "/schedules", info, token, json_body=payload, retry_allowed=True
        )
        schedules = [
            _validate(SDStationSchedule, day, "/schedules")
            for day in _expect_list(response, "/schedules")
        ]
        logger.debug(
            f"Found {sum(len(s.programs) for s in schedules)} airings on {station_id} "
            f"across {len(schedules)} days"
        )
        return schedules

    # ----------------------------------------------------------
    # Program Metadata
    # ----------------------------------------------------------
    async def get_program_metadata(
        self,
        info: ListingsProviderInfo,
        token: str,
        program_ids: list[str],
    ) -> dict[str, SDProgramMetadata]:
        """POST /programs with a plain JSON array of distinct program ids."""
        unique_ids = list(dict.fromkeys(program_ids))
        if not unique_ids:
            return {}

        response = await self.transport.send(
            "POST", "/programs", info, token, json_body=unique_ids, retry_allowed=True
        )
        metadata: dict[str, SDProgramMetadata] = {}
        for program in _expect_list(response, "/programs"):
            details = _validate(SDProgramMetadata, program, "/programs")
            metadata[details.programID] = details
        return metadata

    # ----------------------------------------------------------
    # Artwork
    # ----------------------------------------------------------
    async def get_program_images(
        self,
        info: ListingsProviderInfo,
        token: str,
        program_ids: list[str],
    ) -> dict[str, list[SDImageData]]:
        """
        POST /metadata/programs keyed by program id root.

        Best-effort: any failure is logged and yields no artwork.
        """
        roots = list(dict.fromkeys(program_id_root(pid) for pid in program_ids))
        if not roots:
            return {}

        try:
            response = await self.transport.send(
                "POST", "/metadata/programs", info, token, json_body=roots, retry_allowed=True
            )
            items = _expect_list(response, "/metadata/programs")
        except Exception as e:
            logger.error(f"Error getting image info from SchedulesDirect: {e}")
            return {}

        images: dict[str, list[SDImageData]] = {}
        for item in items:
            try:
                program_images = SDProgramImages.model_validate(item)
            except ValidationError as e:
                # Programs without artwork come back as error objects in "data"
                logger.debug(f"Skipping artwork entry: {e}")
                continue
            images.setdefault(program_images.programID, program_images.data)
        return images

    # ----------------------------------------------------------
    # Headends and lineups
    # ----------------------------------------------------------
    async def find_headends(
        self,
        info: ListingsProviderInfo,
        token: str,
        country: str,
        postal_code: str,
    ) -> list[SDHeadend]:
        """GET /headends?country=&postalcode="""
        response = await self.transport.send(
            "GET",
            "/headends",
            info,
            token,
            params={"country": country, "postalcode": postal_code},
            retry_allowed=False,
        )
        if response is None:
            return []
        return [
            _validate(SDHeadend, headend, "/headends")
            for headend in _expect_list(response, "/headends")
        ]

    async def get_lineup_channels(
        self,
        info: ListingsProviderInfo,
        token: str,
        lineup_id: str,
    ) -> SDLineupChannels:
        """GET /lineups/<LINEUP_ID>: station list plus channel map."""
        response = await self.transport.send(
            "GET", f"/lineups/{lineup_id}", info, token, retry_allowed=True
        )
        if not isinstance(response, dict):
            raise SchedulesDirectTransportError(
                f"/lineups/{lineup_id} expected object, got {type(response).__name__}",
                raw_response=response,
            )
        return _validate(SDLineupChannels, response, f"/lineups/{lineup_id}")

    async def get_account_lineups(
        self, info: ListingsProviderInfo, token: str
    ) -> SDAccountLineups:
        """
        GET /lineups.

        SchedulesDirect answers 400 when no lineups are configured on the account.
        """
        try:
            response = await self.transport.send(
                "GET", "/lineups", info, token, retry_allowed=False
            )
        except SchedulesDirectTransportError as e:
            if e.status_code == 400:
                return SDAccountLineups(lineups=[])
            raise
        return _validate(SDAccountLineups, response or {}, "/lineups")

    async def add_lineup(self, info: ListingsProviderInfo, token: str, lineup_id: str) -> None:
        """PUT /lineups/<LINEUP_ID>; only the status matters."""
        logger.info(f"Adding lineup {lineup_id} to SchedulesDirect account")
        await self.transport.send("PUT", f"/lineups/{lineup_id}", info, token, retry_allowed=False)
