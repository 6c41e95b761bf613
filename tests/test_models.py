import pytest

from ground_tracks.activity_types import ActivityType, normalize_activity_type, parse_activity_type
from ground_tracks.models import GeoPoint, ManifestEntry, to_geopoint
from ground_tracks.utils import slugify


@pytest.mark.parametrize("raw", ["Bike ride", "bike_ride", "BIKE-RIDE", "  bike   Ride "])
def test_activity_type_spellings(raw):
    assert parse_activity_type(raw) is ActivityType.BIKE_RIDE


def test_activity_type_unknown_and_missing():
    assert normalize_activity_type(None) is None
    assert normalize_activity_type("   ") is None
    with pytest.raises(ValueError, match="expected one of"):
        parse_activity_type("Kayak")


def test_to_geopoint_validation():
    assert to_geopoint(["35.5", -82]) == GeoPoint(35.5, -82.0)
    for bad in (["a", 1], [91, 0], [0, 181], [1], "ab"):
        with pytest.raises(ValueError):
            to_geopoint(bad)


def test_manifest_entry_dates():
    base = {"id": "x", "trackUrl": "/x.json", "date": "2023-05-01T12:00"}
    entry = ManifestEntry.from_dict(base)
    assert entry.activity_datetime.year == 2023
    assert ManifestEntry.from_dict({**base, "date": ""}).activity_datetime is None


def test_manifest_entry_rejects_bad_bounds():
    with pytest.raises(ValueError, match="exactly two"):
        ManifestEntry.from_dict(
            {"id": "x", "trackUrl": "/x.json", "bounds": [[0, 0], [1, 1], [2, 2]]}
        )


@pytest.mark.parametrize("flag", ["false", "true", 0, 1, None])
def test_manifest_entry_has_blog_must_be_boolean(flag):
    with pytest.raises(ValueError, match="hasBlog"):
        ManifestEntry.from_dict({"id": "x", "trackUrl": "/x.json", "hasBlog": flag})


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Blue Ridge Loop!", "blue-ridge-loop"),
        ("Mt. Mitchell & Back", "mt-mitchell-back"),
        ("Café Ride", "caf-ride"),
        ("---", ""),
    ],
)
def test_slugify(value, expected):
    assert slugify(value) == expected
