"""
SchedulesDirect integration package.

Provides:
- TokenStore and auth helpers (token cache, 20h validity, 1 minute cool-down after a 400)
- Transport with a single refresh-and-retry on stale tokens
- Core service for the schedules, programs, artwork and lineup endpoints
- Artwork selection and program/channel record builders
- Wrapper exposing the provider operations used by the application
"""

from epgsync.schedulesdirect.auth import SchedulesDirectAuth, TokenStore, default_token_store
from epgsync.schedulesdirect.core import SchedulesDirectService
from epgsync.schedulesdirect.models import (
    ChannelRecord,
    LineupOption,
    ListingsProviderInfo,
    ProgramAudio,
    ProgramRecord,
    SchedulesDirectAuthenticationError,
    SchedulesDirectConfigurationError,
    SchedulesDirectContractError,
    SchedulesDirectError,
    SchedulesDirectServiceUnavailableError,
    SchedulesDirectTransportError,
)
from epgsync.schedulesdirect.transport import SchedulesDirectTransport
from epgsync.schedulesdirect.wrappers import SchedulesDirectWrapper, schedules_direct_wrapper

__all__ = [
    "SchedulesDirectAuth",
    "TokenStore",
    "default_token_store",
    "SchedulesDirectService",
    "SchedulesDirectTransport",
    "SchedulesDirectWrapper",
    "schedules_direct_wrapper",
    "ListingsProviderInfo",
    "ProgramRecord",
    "ProgramAudio",
    "ChannelRecord",
    "LineupOption",
    "SchedulesDirectError",
    "SchedulesDirectConfigurationError",
    "SchedulesDirectTransportError",
    "SchedulesDirectAuthenticationError",
    "SchedulesDirectServiceUnavailableError",
    "SchedulesDirectContractError",
]
