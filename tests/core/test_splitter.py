"""Tests for splitter/core/splitter.py: the owner-gated facade."""

from __future__ import annotations

import pytest

from splitter.core.splitter import DEFAULT_MAX_EVENTS, DEPOSIT_ACK, TokenSplitter
from splitter.errors import AuthorizationError, ValidationError, ValidationRule
from splitter.integration.host import LedgerHost
from splitter.state.caps import MaxAmount
from splitter.state.weights import SecondaryEntry


OWNER = "0x" + "aa" * 20
STRANGER = "0x" + "bb" * 20
PRIMARY = "0x" + "01" * 20
A = "0x" + "0a" * 20
B = "0x" + "0b" * 20
C = "0x" + "0c" * 20
ASSET = "0x" + "e2" * 20
HOLDER = "0x" + "5b" * 20
SENDER = "0x" + "de" * 20

TABLE = [(A, 5000), (B, 3000), (C, 2000)]


def _setup(table=TABLE, cap=None):
    host = LedgerHost(HOLDER)
    sp = host.splitter()
    sp.initialize(OWNER, PRIMARY, table)
    if cap is not None:
        sp.set_cap(OWNER, ASSET, cap)
    return host, sp


def _deposit(host, sp, amount):
    host.mint(SENDER, ASSET, amount)
    return host.deliver(sp, ASSET, SENDER, amount)


# ----------------------------------------------------------------------------
# Settlement scenarios
# ----------------------------------------------------------------------------


def test_worked_scenario_three_deposits():
    host, sp = _setup(cap=25_000)
    for amount in (20_000, 15_000, 5_000):
        assert _deposit(host, sp, amount) == DEPOSIT_ACK

    assert host.balance_of(ASSET, PRIMARY) == 25_000
    assert host.balance_of(ASSET, A) == 7_500
    assert host.balance_of(ASSET, B) == 4_500
    assert host.balance_of(ASSET, C) == 3_000
    assert host.balance_of(ASSET, HOLDER) == 0

    splits = [(e["primary_amount"], e["secondary_amount"]) for e in sp.events if e["event"] == "DepositSettled"]
    assert splits == [(20_000, 0), (5_000, 10_000), (0, 5_000)]


def test_unset_cap_routes_everything_to_primary():
    host, sp = _setup()
    _deposit(host, sp, 1_000)
    assert host.balance_of(ASSET, PRIMARY) == 1_000
    assert host.balance_of(ASSET, A) == 0


def test_zero_cap_single_secondary():
    host, sp = _setup(table=[(A, 10_000)], cap=0)
    res = sp.settle(ASSET, 0)
    assert res.transfers == ()
    host.mint(HOLDER, ASSET, 100)
    res = sp.settle(ASSET, 100)
    assert (res.split.primary_amount, res.split.secondary_amount) == (0, 100)
    assert host.balance_of(ASSET, A) == 100


def test_cap_with_empty_table_routes_everything_to_primary():
    host, sp = _setup(table=[], cap=0)
    _deposit(host, sp, 777)
    assert host.balance_of(ASSET, PRIMARY) == 777


def test_remainder_lands_on_first_entry():
    host, sp = _setup(cap=0)
    _deposit(host, sp, 7)
    assert [host.balance_of(ASSET, x) for x in (A, B, C)] == [4, 2, 1]


def test_on_deposit_before_initialize_is_rejected():
    host = LedgerHost(HOLDER)
    sp = host.splitter()
    host.mint(SENDER, ASSET, 10)
    with pytest.raises(ValidationError) as exc_info:
        host.deliver(sp, ASSET, SENDER, 10)
    assert exc_info.value.rule is ValidationRule.NOT_INITIALIZED
    assert host.balance_of(ASSET, SENDER) == 10


# ----------------------------------------------------------------------------
# Lifecycle and access
# ----------------------------------------------------------------------------


def test_initialize_once():
    _, sp = _setup()
    assert sp.initialized
    with pytest.raises(ValidationError) as exc_info:
        sp.initialize(OWNER, PRIMARY, TABLE)
    assert exc_info.value.rule is ValidationRule.ALREADY_INITIALIZED


def test_failed_initialize_stores_nothing():
    sp = LedgerHost(HOLDER).splitter()
    with pytest.raises(ValidationError):
        sp.initialize(OWNER, PRIMARY, [(A, 5000), (B, 4000)])
    assert not sp.initialized
    assert sp.get_primary_recipient() is None
    assert sp.get_secondary_count() == 0
    # A corrected retry still succeeds.
    sp.initialize(OWNER, PRIMARY, TABLE)
    assert sp.get_secondary_count() == 3


def test_initialize_rejects_primary_in_table():
    sp = LedgerHost(HOLDER).splitter()
    with pytest.raises(ValidationError) as exc_info:
        sp.initialize(OWNER, A, TABLE)
    assert exc_info.value.rule is ValidationRule.PRIMARY_COLLISION


def test_configuration_before_initialize():
    sp = LedgerHost(HOLDER).splitter()
    with pytest.raises(ValidationError) as exc_info:
        sp.set_cap(OWNER, ASSET, 1)
    assert exc_info.value.rule is ValidationRule.NOT_INITIALIZED


@pytest.mark.parametrize(
    "call",
    [
        lambda sp: sp.set_primary_recipient(STRANGER, "0x" + "02" * 20),
        lambda sp: sp.set_cap(STRANGER, ASSET, 1),
        lambda sp: sp.set_secondary_table(STRANGER, [(A, 10_000)]),
        lambda sp: sp.transfer_ownership(STRANGER, STRANGER),
    ],
    ids=["primary", "cap", "table", "ownership"],
)
def test_non_owner_is_rejected(call):
    _, sp = _setup(cap=10)
    root = sp.config_root()
    events = len(sp.events)
    with pytest.raises(AuthorizationError):
        call(sp)
    assert sp.config_root() == root
    assert sp.owner == OWNER
    assert len(sp.events) == events


def test_owner_check_accepts_any_hex_case():
    _, sp = _setup()
    sp.set_cap("0x" + "AA" * 20, ASSET, 5)
    assert sp.get_cap(ASSET) == MaxAmount.of(5)


def test_transfer_ownership():
    _, sp = _setup()
    assert sp.transfer_ownership(OWNER, STRANGER) == OWNER
    assert sp.owner == STRANGER
    with pytest.raises(AuthorizationError):
        sp.set_cap(OWNER, ASSET, 1)
    sp.set_cap(STRANGER, ASSET, 1)
    assert sp.events[-2]["event"] == "OwnershipTransferred"


# ----------------------------------------------------------------------------
# Setters
# ----------------------------------------------------------------------------


def test_set_primary_recipient_returns_previous():
    _, sp = _setup()
    new = "0x" + "02" * 20
    assert sp.set_primary_recipient(OWNER, new) == PRIMARY
    assert sp.get_primary_recipient() == new
    assert sp.events[-1] == {"event": "PrimaryRecipientChanged", "old": PRIMARY, "new": new}


def test_set_primary_recipient_rejects_secondary():
    _, sp = _setup()
    with pytest.raises(ValidationError) as exc_info:
        sp.set_primary_recipient(OWNER, B)
    assert exc_info.value.rule is ValidationRule.PRIMARY_COLLISION
    assert sp.get_primary_recipient() == PRIMARY


def test_set_primary_recipient_rejects_null():
    _, sp = _setup()
    with pytest.raises(ValidationError) as exc_info:
        sp.set_primary_recipient(OWNER, "0x" + "00" * 20)
    assert exc_info.value.rule is ValidationRule.NULL_ADDRESS


def test_set_cap_returns_previous():
    _, sp = _setup()
    assert sp.set_cap(OWNER, ASSET, 100) == MaxAmount.unset()
    assert sp.set_cap(OWNER, ASSET, 0) == MaxAmount.of(100)
    assert sp.get_cap(ASSET) == MaxAmount.of(0)
    assert sp.get_caps() == [(ASSET, MaxAmount.of(0))]
    assert sp.events[-1]["new"] == {"value": 0, "is_set": True}


def test_set_secondary_table_is_all_or_nothing():
    _, sp = _setup()
    with pytest.raises(ValidationError) as exc_info:
        sp.set_secondary_table(OWNER, [(A, 5000), (A, 5000)])
    assert exc_info.value.rule is ValidationRule.DUPLICATE_ADDRESS
    assert sp.get_secondary_entries() == tuple(SecondaryEntry(a, w) for a, w in TABLE)


def test_set_secondary_table_returns_previous_and_allows_empty():
    _, sp = _setup()
    previous = sp.set_secondary_table(OWNER, [])
    assert [e.address for e in previous] == [A, B, C]
    assert sp.get_secondary_count() == 0
    with pytest.raises(IndexError):
        sp.get_secondary_entry(0)


def test_getters():
    _, sp = _setup()
    assert sp.get_secondary_count() == 3
    assert sp.get_secondary_entry(1) == SecondaryEntry(B, 3000)
    assert sp.holder == HOLDER
    with pytest.raises(IndexError):
        sp.get_secondary_entry(3)


def test_config_root_tracks_configuration():
    _, sp = _setup()
    before = sp.config_root()
    sp.set_cap(OWNER, ASSET, 1)
    assert sp.config_root() != before
    sp.set_secondary_table(OWNER, TABLE)
    assert len(sp.config_root()) == 66


def test_splitter_requires_holder():
    host = LedgerHost(HOLDER)
    with pytest.raises(TypeError):
        TokenSplitter(balance_oracle=host, transfer_executor=host)


def test_residual_is_swept_on_every_splitter():
    host, sp = _setup(table=[(A, 10_000)], cap=0)
    host.mint(HOLDER, ASSET, 5)
    _deposit(host, sp, 100)
    assert host.balance_of(ASSET, HOLDER) == 0
    assert host.balance_of(ASSET, A) == 105


# ----------------------------------------------------------------------------
# Audit events
# ----------------------------------------------------------------------------


def test_event_log_is_bounded():
    host = LedgerHost(HOLDER)
    sp = TokenSplitter(balance_oracle=host, transfer_executor=host, holder=HOLDER, max_events=2)
    sp.initialize(OWNER, PRIMARY, TABLE)
    for value in (1, 2, 3):
        sp.set_cap(OWNER, ASSET, value)
    assert len(sp.events) == 2
    assert [e["new"]["value"] for e in sp.events] == [2, 3]


def test_default_event_log_bound():
    _, sp = _setup()
    assert sp.events.maxlen == DEFAULT_MAX_EVENTS


@pytest.mark.parametrize("bad", [0, -1, True, 2.0])
def test_event_log_bound_must_be_positive(bad):
    host = LedgerHost(HOLDER)
    with pytest.raises(ValueError):
        TokenSplitter(balance_oracle=host, transfer_executor=host, holder=HOLDER, max_events=bad)
