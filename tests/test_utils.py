import pytest

from objectify_recs.utils import (
    normalize_feature,
    parse_feature,
    parse_number,
    track_card_html,
    track_url,
    validate_track_id,
)


@pytest.mark.parametrize("value, expected", [
    ("0.8", 0.8),
    ("  -3 ", -3.0),
    ("-7.5 dB", -7.5),
    (".5", 0.5),
    ("1e-2", 0.01),
    ("+0.25", 0.25),
    (0.4, 0.4),
    (2, 2.0),
])
def test_parse_number(value, expected):
    assert parse_number(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", [None, "", "high", "nan", "inf", float("nan"), "-", True])
def test_parse_number_rejects(value):
    assert parse_number(value) is None


def test_parse_feature_default():
    assert parse_feature("abc") == 0.5
    assert parse_feature("abc", default=0.1) == 0.1
    assert parse_feature("0") == 0.0


def test_normalize_loudness():
    assert normalize_feature("loudness", -60.0) == 0.0
    assert normalize_feature("loudness", 0.0) == 1.0
    assert normalize_feature("loudness", -30.0) == pytest.approx(0.5)
    assert normalize_feature("loudness", 3.0) == 1.0


def test_normalize_leaves_unit_features():
    assert normalize_feature("energy", 0.42) == 0.42


def test_track_url():
    assert track_url("4cOdK2wGLETKBW3PvgPWqT") == "https://open.spotify.com/track/4cOdK2wGLETKBW3PvgPWqT"


def test_validate_track_id():
    assert validate_track_id("4cOdK2wGLETKBW3PvgPWqT")
    assert not validate_track_id("")
    assert not validate_track_id("short")
    assert not validate_track_id("4cOdK2wGLETKBW3PvgPWq!")


def test_track_card_escapes_catalog_values():
    card = track_card_html(2, 'https://open.spotify.com/track/x" onmouseover="alert(1)', "<b>Song</b>", "A & B")

    assert 'href="https://open.spotify.com/track/x&quot; onmouseover=&quot;alert(1)"' in card
    assert "&lt;b&gt;Song&lt;/b&gt;" in card
    assert "A &amp; B" in card
    assert card.count("<a ") == 1
