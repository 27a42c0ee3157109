"""Tests for association reconciliation."""

from operator import attrgetter

import pytest

from music_catalog.domain.catalog.reconciliation import (
    MembershipChange,
    parse_selected_keys,
    reconcile,
)
from music_catalog.domain.entities import Instrument

CANDIDATES = [
    Instrument(name="Guitar", id=1),
    Instrument(name="Piano", id=2),
    Instrument(name="Drums", id=3),
]
KEY = attrgetter("id")


class TestReconcile:
    """Minimal add/remove computation over a candidate universe."""

    def test_create_adds_every_requested_candidate(self):
        """A new owner gains exactly the requested candidates."""
        change = reconcile(frozenset(), frozenset({1, 2}), CANDIDATES, KEY)

        assert change.to_add == {1, 2}
        assert change.to_remove == frozenset()

    def test_swap_adds_and_removes(self):
        """Guitar+Piano to Piano+Drums adds Drums and removes Guitar."""
        change = reconcile(frozenset({1, 2}), frozenset({2, 3}), CANDIDATES, KEY)

        assert change.to_add == {3}
        assert change.to_remove == {1}
        assert change.apply({1, 2}) == {2, 3}

    @pytest.mark.parametrize("requested", [None, frozenset()])
    def test_empty_request_clears_all(self, requested):
        """No selection removes every current member."""
        change = reconcile(frozenset({1, 3}), requested, CANDIDATES, KEY)

        assert change.to_add == frozenset()
        assert change.to_remove == {1, 3}
        assert change.apply({1, 3}) == frozenset()

    def test_unknown_keys_are_ignored(self):
        """Requested keys outside the universe are never added."""
        change = reconcile(frozenset(), frozenset({2, 99}), CANDIDATES, KEY)

        assert change.to_add == {2}

    def test_current_outside_universe_is_kept(self):
        """Only candidates are compared, so foreign current keys survive."""
        change = reconcile(frozenset({1, 42}), frozenset({1}), CANDIDATES, KEY)

        assert not change.has_changes
        assert change.apply({1, 42}) == {1, 42}

    def test_reconciliation_is_idempotent(self):
        """Applying the result and reconciling again yields no changes."""
        current = frozenset({1})
        requested = frozenset({2, 3})
        first = reconcile(current, requested, CANDIDATES, KEY)

        second = reconcile(first.apply(current), requested, CANDIDATES, KEY)

        assert not second.has_changes

    def test_result_matches_set_formula(self):
        """apply(current) == (current - (U - requested)) | (requested & U)."""
        universe = {1, 2, 3}
        current = frozenset({1, 3})
        requested = frozenset({2, 3, 7})

        change = reconcile(current, requested, CANDIDATES, KEY)

        expected = (current - (universe - requested)) | (requested & universe)
        assert change.apply(current) == expected


class TestMembershipChange:
    def test_has_changes(self):
        assert not MembershipChange().has_changes
        assert MembershipChange(to_add={1}).has_changes
        assert MembershipChange(to_remove={1}).has_changes


class TestParseSelectedKeys:
    """Conversion of submitted checkbox tokens."""

    def test_none_means_nothing_submitted(self):
        assert parse_selected_keys(None) is None

    def test_tokens_become_integers(self):
        assert parse_selected_keys(["1", " 3 ", ""]) == {1, 3}

    def test_malformed_token_raises(self):
        with pytest.raises(ValueError):
            parse_selected_keys(["1", "guitar"])
