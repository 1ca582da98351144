# tests/unit/test_ratings.py
"""
Tests for client and overridden priority / severity ratings.
"""

import pytest

from tsklets.tickets.domain import ClientRating, OverriddenRating, rating_from


class TestClientRating:

    def test_unset_defaults_to_medium(self):
        rating = ClientRating()
        assert rating.client is None
        assert rating.effective == 3

    def test_client_value_is_effective(self):
        assert ClientRating(1).effective == 1

    @pytest.mark.parametrize("value", [0, 6])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError):
            ClientRating(value)


class TestOverriddenRating:

    def test_override_wins(self):
        rating = OverriddenRating(client=1, internal=4)
        assert rating.effective == 4
        assert rating.client == 1

    def test_internal_value_required(self):
        with pytest.raises(ValueError):
            OverriddenRating(client=2, internal=None)

    def test_internal_value_range(self):
        with pytest.raises(ValueError):
            OverriddenRating(client=None, internal=9)


class TestRatingFrom:

    def test_no_internal_gives_client_rating(self):
        assert rating_from(2, None) == ClientRating(2)

    def test_internal_gives_override(self):
        assert rating_from(None, 5) == OverriddenRating(client=None, internal=5)
