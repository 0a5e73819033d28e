"""Tests for transition outcomes."""

import dataclasses

import pytest

from fluxstore import Changed, Unchanged, changed, unchanged
from fluxstore.outcome import is_outcome


@pytest.mark.unit
def test_changed_carries_value_and_flag():
    """Changed holds the new value and reports a change."""
    outcome = Changed(5)

    assert outcome.value == 5
    assert outcome.changed is True


@pytest.mark.unit
def test_unchanged_carries_value_and_flag():
    """Unchanged holds the value and reports no change."""
    outcome = Unchanged("same")

    assert outcome.value == "same"
    assert outcome.changed is False


@pytest.mark.unit
def test_helpers_build_matching_arms():
    """changed()/unchanged() build the corresponding arm."""
    assert changed(1) == Changed(1)
    assert unchanged(1) == Unchanged(1)


@pytest.mark.unit
def test_arms_are_distinct_even_with_equal_values():
    """An unchanged outcome never equals a changed one."""
    assert Changed(1) != Unchanged(1)


@pytest.mark.unit
def test_outcomes_are_immutable():
    """Outcomes are frozen."""
    outcome = Changed([1])

    with pytest.raises(dataclasses.FrozenInstanceError):
        outcome.value = [2]


@pytest.mark.unit
def test_is_outcome_rejects_other_values():
    """Plain values and tuples are not outcomes."""
    assert is_outcome(Changed(0))
    assert is_outcome(Unchanged(0))
    assert not is_outcome((0, True))
    assert not is_outcome(None)


@pytest.mark.unit
def test_repr_shows_arm_and_value():
    assert repr(Changed("a")) == "Changed('a')"
    assert repr(Unchanged(3)) == "Unchanged(3)"
