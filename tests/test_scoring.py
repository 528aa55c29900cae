"""
Tests for candidate confidence scoring.
"""

import pytest

from enrichment.extraction.scoring import (
    ROLE_SOURCE_PAGE,
    ROLE_SOURCE_WINDOW,
    score_comp,
    score_contact,
    score_date,
    score_venue,
)


class TestContactScore:
    @pytest.mark.parametrize(
        "role_source,has_name,expected",
        [
            (None, False, 0.4),
            (None, True, 0.6),
            (ROLE_SOURCE_PAGE, False, 0.6),
            (ROLE_SOURCE_PAGE, True, 0.8),
            (ROLE_SOURCE_WINDOW, False, 0.7),
            (ROLE_SOURCE_WINDOW, True, 0.9),
        ],
    )
    def test_weights(self, role_source, has_name, expected):
        assert score_contact(role_source, has_name) == expected


class TestVenueScore:
    def test_keyword_and_address(self):
        assert score_venue(True, True) == 0.8

    def test_address_only(self):
        assert score_venue(False, True) == 0.5

    def test_keyword_only(self):
        assert score_venue(True, False) == 0.4


class TestCompScore:
    def test_all_signals(self):
        assert score_comp(True, True, True, True) == 0.9

    def test_amount_only(self):
        assert score_comp(True, False, False, False) == 0.4

    def test_floor_applies_to_travel_only_lines(self):
        assert score_comp(False, False, False, True) == 0.3


class TestDateScore:
    def test_parsed_and_text_only(self):
        assert score_date(True) == 0.6
        assert score_date(False) == 0.3
