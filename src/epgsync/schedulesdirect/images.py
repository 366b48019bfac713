"""
Artwork selection for SchedulesDirect programs.

Candidates are ordered by closeness to the desired aspect ratio, then by height
(larger first). Candidates without usable dimensions sort after every valid one.
"""

from __future__ import annotations

from collections.abc import Iterable

from epgsync.config import SCHEDULES_DIRECT_API_URL
from epgsync.schedulesdirect.models import ProgramImages, SDImageData

PRIMARY_ASPECT = 2.0 / 3
WIDE_ASPECT = 16.0 / 9


def _parse_dimension(value: str | int | None) -> int:
    if value is None:
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def get_aspect_ratio(image: SDImageData) -> float:
    """width / height, or 0 when either is missing, zero or not numeric."""
    width = _parse_dimension(image.width)
    height = _parse_dimension(image.height)
    if width == 0 or height == 0:
        return 0
    return width / height


def get_size_order(image: SDImageData) -> int:
    return _parse_dimension(image.height)


def select_image(candidates: Iterable[SDImageData], desired_aspect: float) -> SDImageData | None:
    """Return the best candidate for desired_aspect, or None for an empty list."""

    def sort_key(image: SDImageData) -> tuple[bool, float, int]:
        aspect = get_aspect_ratio(image)
        return (aspect == 0, abs(desired_aspect - aspect), -get_size_order(image))

    ordered = sorted(candidates, key=sort_key)
    return ordered[0] if ordered else None


def resolve_image_url(uri: str | None, base_url: str = SCHEDULES_DIRECT_API_URL) -> str | None:
    if not uri or not uri.strip():
        return None
    if "http" in uri.lower():
        return uri
    return f"{base_url}/image/{uri}"


def get_program_image(
    candidates: Iterable[SDImageData],
    desired_aspect: float,
    base_url: str = SCHEDULES_DIRECT_API_URL,
) -> str | None:
    match = select_image(candidates, desired_aspect)
    if match is None:
        return None
    return resolve_image_url(match.uri, base_url)


def select_program_images(
    candidates: list[SDImageData], base_url: str = SCHEDULES_DIRECT_API_URL
) -> ProgramImages:
    """
    Pick primary, thumb and backdrop artwork for one program.

    primary: text-bearing 2:3, falling back to any candidate at 2:3
    thumb: text-bearing 16:9, dropped when it equals primary
    backdrop: text-free 16:9
    """
    with_text = [i for i in candidates if (i.text or "").lower() == "yes"]
    without_text = [i for i in candidates if (i.text or "").lower() == "no"]

    primary = get_program_image(with_text, PRIMARY_ASPECT, base_url) or get_program_image(
        candidates, PRIMARY_ASPECT, base_url
    )

    thumb = get_program_image(with_text, WIDE_ASPECT, base_url)
    if thumb == primary:
        thumb = None

    backdrop = get_program_image(without_text, WIDE_ASPECT, base_url)

    return ProgramImages(primary=primary, thumb=thumb, backdrop=backdrop)
