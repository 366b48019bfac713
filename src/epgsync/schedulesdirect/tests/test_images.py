"""Unit tests for artwork selection."""

import pytest

from epgsync.config import SCHEDULES_DIRECT_API_URL
from epgsync.schedulesdirect.images import (
    PRIMARY_ASPECT,
    WIDE_ASPECT,
    get_aspect_ratio,
    resolve_image_url,
    select_image,
    select_program_images,
)
from epgsync.schedulesdirect.models import SDImageData


def _image(uri, width, height, text=None):
    return SDImageData(uri=uri, width=width, height=height, text=text)


@pytest.mark.parametrize(
    "width, height, expected",
    [
        ("240", "360", 2 / 3),
        (1920, 1080, 16 / 9),
        (" 400 ", "300", 4 / 3),
        (None, "360", 0),
        ("240", "0", 0),
        ("wide", "360", 0),
    ],
)
def test_get_aspect_ratio(width, height, expected):
    assert get_aspect_ratio(_image("a.jpg", width, height)) == pytest.approx(expected)


def test_select_image_prefers_closest_aspect_then_height():
    small_poster = _image("small.jpg", "240", "360")
    large_poster = _image("large.jpg", "1000", "1500")
    banner = _image("banner.jpg", "1920", "1080")

    assert select_image([banner, small_poster, large_poster], PRIMARY_ASPECT) is large_poster
    assert select_image([small_poster, banner], WIDE_ASPECT) is banner


def test_select_image_puts_unknown_dimensions_last():
    unknown = _image("unknown.jpg", None, None)
    far_off = _image("square.jpg", "500", "500")

    # |2/3 - 0| would beat |2/3 - 1| if unknown dimensions were not forced last
    assert select_image([unknown, far_off], PRIMARY_ASPECT) is far_off
    assert select_image([unknown], PRIMARY_ASPECT) is unknown
    assert select_image([], PRIMARY_ASPECT) is None


def test_resolve_image_url():
    assert resolve_image_url("assets/p1.jpg") == f"{SCHEDULES_DIRECT_API_URL}/image/assets/p1.jpg"
    assert resolve_image_url("https://cdn.example.com/p1.jpg") == "https://cdn.example.com/p1.jpg"
    assert resolve_image_url("p1.jpg", "http://localhost") == "http://localhost/image/p1.jpg"
    assert resolve_image_url("") is None
    assert resolve_image_url(None) is None


def test_select_program_images_assigns_each_slot():
    candidates = [
        _image("poster_text.jpg", "240", "360", text="yes"),
        _image("poster_clean.jpg", "1000", "1500", text="no"),
        _image("banner_text.jpg", "1920", "1080", text="yes"),
        _image("https://cdn.example.com/backdrop.jpg", "1280", "720", text="no"),
    ]

    images = select_program_images(candidates, "http://sd")

    assert images.primary == "http://sd/image/poster_text.jpg"
    assert images.thumb == "http://sd/image/banner_text.jpg"
    assert images.backdrop == "https://cdn.example.com/backdrop.jpg"


def test_select_program_images_falls_back_to_any_primary():
    candidates = [
        _image("poster_clean.jpg", "240", "360", text="no"),
        _image("unknown_text.jpg", "240", "360"),
    ]

    images = select_program_images(candidates, "http://sd")

    assert images.primary == "http://sd/image/poster_clean.jpg"
    assert images.thumb is None
    assert images.backdrop == "http://sd/image/poster_clean.jpg"


def test_select_program_images_drops_thumb_equal_to_primary():
    candidates = [
        _image("banner_text.jpg", "1920", "1080", text="yes"),
        _image("banner_clean.jpg", "1920", "1080", text="no"),
    ]

    images = select_program_images(candidates, "http://sd")

    assert images.primary == "http://sd/image/banner_text.jpg"
    assert images.thumb is None
    assert images.backdrop == "http://sd/image/banner_clean.jpg"


def test_select_program_images_empty():
    images = select_program_images([])

    assert images.primary is None
    assert images.thumb is None
    assert images.backdrop is None


def test_select_image_exact_ratio_beats_wide():
    poster = _image("poster.jpg", 2, 3, text="yes")
    wide = _image("wide.jpg", 16, 9, text="yes")

    assert select_image([wide, poster], PRIMARY_ASPECT) is poster


def test_select_image_zero_ratio_never_beats_valid():
    zero = _image("zero.jpg", 0, 0)
    four_three = _image("four_three.jpg", 4, 3)

    assert select_image([zero, four_three], WIDE_ASPECT) is four_three
