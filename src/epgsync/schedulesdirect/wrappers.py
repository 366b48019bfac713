"""
Provider-facing operations: programs for a channel, channels for a lineup,
available lineups and account validation.
"""

from __future__ import annotations

import re
from datetime import datetime, tzinfo

from epgsync.config import get_local_timezone
from epgsync.schedulesdirect.core import SchedulesDirectService
from epgsync.schedulesdirect.images import select_program_images
from epgsync.schedulesdirect.models import (
    ChannelRecord,
    LineupOption,
    ListingsProviderInfo,
    ProgramImages,
    ProgramRecord,
    SchedulesDirectConfigurationError,
    SchedulesDirectContractError,
    SchedulesDirectError,
    SchedulesDirectServiceUnavailableError,
)
from epgsync.schedulesdirect.utils import (
    create_channel_records,
    create_program_record,
    program_id_root,
)
from epgsync.utils.get_logger import get_logger

logger = get_logger(__name__)

STATION_HOST_SUFFIX = re.compile(re.escape(".json.schedulesdirect.org"), re.IGNORECASE)


def normalize_channel_id(channel_id: str) -> str:
    """Strip the legacy host suffix and the leading 'I' from a station id."""
    return STATION_HOST_SUFFIX.sub("", channel_id).lstrip("I")


class SchedulesDirectWrapper:
    """Orchestrates token, fetchers, image selection and merging for the application."""

    def __init__(
        self,
        service: SchedulesDirectService | None = None,
        local_tz: tzinfo | None = None,
    ):
        self.service = service or SchedulesDirectService()
        self.auth = self.service.auth
        self.local_tz = local_tz or get_local_timezone()

    async def get_programs(
        self,
        info: ListingsProviderInfo,
        channel_id: str,
        start_date_utc: datetime,
        end_date_utc: datetime,
    ) -> list[ProgramRecord]:
        """
        Fetch and merge all airings of a channel between two UTC instants.

        Returns an empty list when no token is available (missing credentials or
        authentication cool-down). Records keep the order the service returned.
        """
        if not channel_id:
            raise SchedulesDirectConfigurationError("channel_id is required")

        channel_id = normalize_channel_id(channel_id)

        token = await self.auth.get_token(info)
        if not token:
            logger.warning("SchedulesDirect token is empty, returning empty program list")
            return []

        dates = self.service.get_schedule_request_dates(
            start_date_utc, end_date_utc, local_tz=self.local_tz
        )
        if not dates:
            logger.warning(f"Empty date range {start_date_utc} → {end_date_utc}, nothing to fetch")
            return []
        logger.info(f"Fetching schedules for station {channel_id}: {dates[0]} → {dates[-1]}")

        daily_schedules = await self.service.get_station_schedules(info, token, channel_id, dates)
        airings = [program for day in daily_schedules for program in day.programs]

        program_details = await self.service.get_program_metadata(
            info, token, [a.programID for a in airings]
        )

        ids_with_images = [pid for pid, d in program_details.items() if d.hasImageArtwork]
        candidates = await self.service.get_program_images(info, token, ids_with_images)
        selected: dict[str, ProgramImages] = {}

        records: list[ProgramRecord] = []
        for airing in airings:
            details = program_details.get(airing.programID)
            if details is None:
                raise SchedulesDirectContractError(
                    f"Program {airing.programID} missing from /programs response"
                )

            root = program_id_root(airing.programID)
            images = selected.get(root)
            if images is None and root in candidates:
                images = select_program_images(candidates[root], self.service.transport.base_url)
                selected[root] = images

            records.append(create_program_record(channel_id, airing, details, images))

        logger.info(f"Built {len(records)} programs for station {channel_id}")
        return records

    async def get_channels(self, info: ListingsProviderInfo) -> list[ChannelRecord]:
        """Channels of the configured lineup, one per channel map entry."""
        if not info.listings_id:
            raise SchedulesDirectConfigurationError("Listings Id required")

        token = await self.auth.get_token(info)
        if not token:
            raise SchedulesDirectServiceUnavailableError("SchedulesDirect token required")

        lineup = await self.service.get_lineup_channels(info, token, info.listings_id)
        logger.info(f"Found {len(lineup.map)} channels on lineup {info.listings_id}")
        return create_channel_records(lineup)

    async def get_lineups(
        self, info: ListingsProviderInfo, country: str, location: str
    ) -> list[LineupOption]:
        """Lineups offered for a country and postal code; empty on any failure."""
        lineups: list[LineupOption] = []

        token = await self.auth.get_token(info)
        if not token:
            return lineups

        try:
            headends = await self.service.find_headends(info, token, country, location)
        except SchedulesDirectError as e:
            logger.error(f"Error getting headends: {e}")
            return lineups

        if not headends:
            logger.info("No lineups available")

        for headend in headends:
            for lineup in headend.lineups:
                lineup_id = lineup.uri.rsplit("/", 1)[-1] if lineup.uri else lineup.lineup
                name = lineup.name if lineup.name and lineup.name.strip() else lineup.lineup
                lineups.append(LineupOption(id=lineup_id, name=name))

        return lineups

    async def has_lineup(self, info: ListingsProviderInfo) -> bool:
        if not info.listings_id:
            raise SchedulesDirectConfigurationError("Listings Id required")

        token = await self.auth.get_token(info)
        if not token:
            raise SchedulesDirectServiceUnavailableError("SchedulesDirect token required")

        account_lineups = await self.service.get_account_lineups(info, token)
        return account_lineups.has_lineup(info.listings_id)

    async def add_lineup(self, info: ListingsProviderInfo) -> None:
        token = await self.auth.get_token(info)
        if not token:
            raise SchedulesDirectServiceUnavailableError("Authentication required")

        if not info.listings_id:
            raise SchedulesDirectConfigurationError("Listings Id required")

        await self.service.add_lineup(info, token, info.listings_id)

    async def validate(
        self,
        info: ListingsProviderInfo,
        validate_login: bool = True,
        validate_listings: bool = True,
    ) -> None:
        """
        Check configured credentials and make sure the lineup is on the account.

        Raises:
            SchedulesDirectConfigurationError: a required setting is missing.
            SchedulesDirectAuthenticationError / SchedulesDirectTransportError from the service.
        """
        if validate_login:
            if not info.username:
                raise SchedulesDirectConfigurationError("Username is required")
            if not info.password:
                raise SchedulesDirectConfigurationError("Password is required")

        if validate_listings:
            if not info.listings_id:
                raise SchedulesDirectConfigurationError("Listings Id required")

            if not await self.has_lineup(info):
                await self.add_lineup(info)


schedules_direct_wrapper = SchedulesDirectWrapper()
