"""Property tests for the allocation kernels (conservation, cap monotonicity)."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from splitter.core.allocation import distribute_secondary, split
from splitter.state.caps import MaxAmount
from splitter.state.weights import BPS_DENOM, SecondaryEntry


AMOUNT_MAX = 10**40


@st.composite
def weight_tables(draw):
    """Tables of 1..12 distinct recipients whose weights sum to 10000."""
    n = draw(st.integers(min_value=1, max_value=12))
    cuts = draw(st.lists(st.integers(min_value=1, max_value=BPS_DENOM - 1), min_size=n - 1, max_size=n - 1, unique=True))
    bounds = [0] + sorted(cuts) + [BPS_DENOM]
    weights = [hi - lo for lo, hi in zip(bounds, bounds[1:])]
    return tuple(SecondaryEntry("0x%040x" % (i + 0x100), w) for i, w in enumerate(weights))


caps = st.one_of(
    st.just(MaxAmount.unset()),
    st.integers(min_value=0, max_value=AMOUNT_MAX).map(MaxAmount.of),
)


@settings(max_examples=300, deadline=None)
@given(
    deposit=st.integers(min_value=0, max_value=AMOUNT_MAX),
    balance=st.integers(min_value=0, max_value=AMOUNT_MAX),
    cap=caps,
)
def test_split_conserves_deposit(deposit, balance, cap):
    r = split(deposit, balance, cap)
    assert r.primary_amount + r.secondary_amount == deposit
    if cap.is_set and r.primary_amount > 0:
        # Never pushes the primary past its cap.
        assert balance + r.primary_amount <= cap.value


@settings(max_examples=300, deadline=None)
@given(amount=st.integers(min_value=0, max_value=AMOUNT_MAX), table=weight_tables())
def test_distribution_conserves_amount(amount, table):
    out = distribute_secondary(amount, table)
    if amount == 0:
        assert out == ()
        return
    assert sum(a.amount for a in out) == amount
    assert [a.address for a in out] == [e.address for e in table]
    # Only index 0 can exceed its floor share.
    for alloc, entry in list(zip(out, table))[1:]:
        assert alloc.amount == amount * entry.weight // BPS_DENOM


@settings(max_examples=200, deadline=None)
@given(
    cap=st.integers(min_value=0, max_value=10**12),
    excess=st.integers(min_value=1, max_value=10**12),
    deposits=st.lists(st.integers(min_value=0, max_value=10**12), min_size=1, max_size=10),
)
def test_over_cap_primary_receives_nothing(cap, excess, deposits):
    balance = cap + excess
    for d in deposits:
        r = split(d, balance, MaxAmount.of(cap))
        assert r.primary_amount == 0
        assert r.secondary_amount == d
        balance += r.primary_amount
