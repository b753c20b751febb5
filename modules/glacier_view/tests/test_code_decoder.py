"""Tests for the RGI classification code decoder."""

import warnings

import pytest

from modules.glacier_view.decoding import (
    DecodedAttributes, MalformedCodeWarning, SURGE_CODE_TABLE, TERMINUS_CODE_TABLE,
    TerminusType, decode_classification_code
)


class TestTerminusDecoding:
    """Test cases for the terminus type position."""

    @pytest.mark.parametrize("code,expected", [
        ("X0XX", TerminusType.LAND_TERMINATING),
        ("X1XX", TerminusType.TIDEWATER),
        ("X2XX", TerminusType.LAKE),
        ("0000", TerminusType.LAND_TERMINATING),
        ("3199", TerminusType.TIDEWATER),
    ])
    def test_known_terminus_codes(self, code, expected):
        assert decode_classification_code(code).terminus_type == expected

    @pytest.mark.parametrize("code", ["X9XX", "XXXX", "X3XX", "X XX"])
    def test_unknown_terminus_code(self, code):
        """Characters outside the table decode to Unknown without a warning."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", MalformedCodeWarning)
            attributes = decode_classification_code(code)

        assert attributes.terminus_type == TerminusType.UNKNOWN
        assert attributes.terminus_code is None

    def test_integer_codes(self):
        assert TerminusType.LAND_TERMINATING.code == 0
        assert TerminusType.TIDEWATER.code == 1
        assert TerminusType.LAKE.code == 2
        assert TerminusType.UNKNOWN.code is None


class TestSurgeDecoding:
    """Test cases for the surge evidence position."""

    @pytest.mark.parametrize("code,expected", [
        ("XX1X", True),
        ("XX3X", True),
        ("XX0X", False),
        ("XX2X", False),
        ("XX9X", False),
    ])
    def test_surge_codes(self, code, expected):
        assert decode_classification_code(code).is_surging is expected

    def test_decode_tables_are_data(self):
        assert set(TERMINUS_CODE_TABLE) == {'0', '1', '2'}
        assert SURGE_CODE_TABLE == frozenset({'1', '3'})


class TestCombinedDecoding:

    def test_tidewater_not_surging(self):
        assert decode_classification_code("X10X") == DecodedAttributes(
            terminus_type=TerminusType.TIDEWATER, is_surging=False
        )

    def test_lake_surging(self):
        assert decode_classification_code("X23X") == DecodedAttributes(
            terminus_type=TerminusType.LAKE, is_surging=True
        )

    def test_unassigned_code(self):
        attributes = decode_classification_code("XX9X")
        assert attributes.terminus_type == TerminusType.UNKNOWN
        assert attributes.is_surging is False

    def test_decoding_is_deterministic(self):
        assert decode_classification_code("1031") == decode_classification_code("1031")


class TestMalformedCodes:
    """Test cases for codes that are not 4-character strings."""

    @pytest.mark.parametrize("code", [None, "", "010", "01000", 100, 1.5])
    def test_malformed_code_warns_and_decodes_to_default(self, code):
        with pytest.warns(MalformedCodeWarning):
            attributes = decode_classification_code(code)

        assert attributes.terminus_type == TerminusType.UNKNOWN
        assert attributes.is_surging is False

    def test_malformed_code_never_raises(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", MalformedCodeWarning)
            assert decode_classification_code(object()).terminus_type == TerminusType.UNKNOWN
