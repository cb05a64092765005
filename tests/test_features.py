import pytest

from objectify_recs.exceptions import DescriptorFormatError
from objectify_recs.features import (
    TargetFeatureVector,
    parse_descriptor,
    parse_structured_descriptor,
    split_lines,
)

DESCRIPTION = "\n".join([
    "Lantern",
    "Paper",
    "None",
    "Red",
    "Calm",
    "Warm",
    "Nostalgic",
    "Ceremonial",
    "Chime",
    "0.8",
    "0.9",
    "-3",
    "0.1",
    "0.2",
    "0.65",
    "Asia",
])


class TestParseDescriptor:

    def test_reads_last_seven_lines_in_order(self):
        target = parse_descriptor(DESCRIPTION)

        assert target.danceability == 0.8
        assert target.energy == 0.9
        assert target.loudness == -3.0
        assert target.speechiness == 0.1
        assert target.acousticness == 0.2
        assert target.valence == 0.65
        assert target.region == "Asia"
        assert target.defaulted_fields == ()

    def test_exactly_seven_lines(self):
        target = parse_descriptor("0.8\n0.9\n-3\n0.1\n0.2\n0.65\nAsia")
        assert target.as_dict() == {
            "danceability": 0.8,
            "energy": 0.9,
            "loudness": -3.0,
            "speechiness": 0.1,
            "acousticness": 0.2,
            "valence": 0.65,
        }
        assert target.region == "Asia"

    def test_region_is_trimmed(self):
        target = parse_descriptor("0.8\n0.9\n-3\n0.1\n0.2\n0.65\n   Europe  ")
        assert target.region == "Europe"

    def test_trailing_newline_and_blank_lines_ignored(self):
        text = "Lamp\n\n0.8\n0.9\n\n-3\n0.1\n0.2\n0.65\nAsia\n\n"
        target = parse_descriptor(text)
        assert target.danceability == 0.8
        assert target.valence == 0.65
        assert target.region == "Asia"

    def test_windows_line_endings(self):
        target = parse_descriptor("0.8\r\n0.9\r\n-3\r\n0.1\r\n0.2\r\n0.65\r\nAsia\r\n")
        assert target.loudness == -3.0
        assert target.region == "Asia"

    def test_non_numeric_line_defaults_only_that_feature(self):
        target = parse_descriptor("0.8\nhigh\n-3\n0.1\n0.2\n0.65\nAsia")

        assert target.energy == 0.5
        assert target.danceability == 0.8
        assert target.loudness == -3.0
        assert target.valence == 0.65
        assert target.defaulted_fields == ("energy",)

    def test_trailing_units_are_ignored(self):
        target = parse_descriptor("0.8\n0.9\n-7.5 dB\n0.1\n0.2\n0.65\nAsia")
        assert target.loudness == -7.5

    def test_zero_is_kept(self):
        target = parse_descriptor("0.8\n0.9\n-3\n0.1\n0\n0.65\nAsia")
        assert target.acousticness == 0.0
        assert "acousticness" not in target.defaulted_fields

    def test_missing_lines_default(self):
        # Positions count from the end, so only the last two features exist
        target = parse_descriptor("0.2\n0.65\nAsia")

        assert target.acousticness == 0.2
        assert target.valence == 0.65
        assert target.region == "Asia"
        for name in ("danceability", "energy", "loudness", "speechiness"):
            assert getattr(target, name) == 0.5
        assert target.defaulted_fields == ("danceability", "energy", "loudness", "speechiness")

    def test_empty_text(self):
        target = parse_descriptor("")
        assert target == TargetFeatureVector()
        assert target.region == ""
        assert len(target.defaulted_fields) == 6

    def test_nan_text_is_not_a_number(self):
        target = parse_descriptor("nan\n0.9\n-3\n0.1\n0.2\n0.65\nAsia")
        assert target.danceability == 0.5


class TestStrictParsing:

    def test_valid_text_passes(self):
        target = parse_descriptor(DESCRIPTION, strict=True)
        assert target.region == "Asia"

    def test_too_few_lines_raises(self):
        with pytest.raises(DescriptorFormatError) as exc_info:
            parse_descriptor("0.2\n0.65\nAsia", strict=True)
        assert "region" in exc_info.value.fields

    def test_non_numeric_raises_with_field_names(self):
        with pytest.raises(DescriptorFormatError) as exc_info:
            parse_descriptor("0.8\nhigh\n-3\n0.1\nlow\n0.65\nAsia", strict=True)
        assert exc_info.value.fields == ["energy", "acousticness"]


class TestStructuredParsing:

    def test_json_object(self):
        text = (
            '{"description": "lantern", "danceability": 0.8, "energy": 0.9, "loudness": -3,'
            ' "speechiness": 0.1, "acousticness": 0.2, "valence": 0.65, "region": " Asia "}'
        )
        target = parse_structured_descriptor(text)
        assert target.danceability == 0.8
        assert target.loudness == -3.0
        assert target.region == "Asia"

    def test_code_fenced_json(self):
        text = '```json\n{"danceability": "0.7", "energy": 0.6, "loudness": -8, "speechiness": 0.1,' \
               ' "acousticness": 0.4, "valence": 0.5, "region": "Europe"}\n```'
        target = parse_structured_descriptor(text)
        assert target.danceability == 0.7
        assert target.region == "Europe"

    def test_missing_key_defaults(self):
        target = parse_structured_descriptor('{"danceability": 0.7}')
        assert target.energy == 0.5
        assert target.region == ""
        assert "energy" in target.defaulted_fields

    def test_missing_key_strict_raises(self):
        with pytest.raises(DescriptorFormatError):
            parse_structured_descriptor('{"danceability": 0.7}', strict=True)

    def test_not_json_raises(self):
        with pytest.raises(DescriptorFormatError):
            parse_structured_descriptor("0.8\n0.9")

    def test_json_list_raises(self):
        with pytest.raises(DescriptorFormatError):
            parse_structured_descriptor("[0.8, 0.9]")


def test_split_lines_drops_blank_lines():
    assert split_lines("a\n \n\nb\n") == ["a", "b"]
    assert split_lines(None) == []
