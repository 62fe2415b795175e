import itertools

import pytest

from orderdesk.app.domain import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OrderStatus,
    can_transition,
    transition,
)
from orderdesk.app.errors import TransitionError

LEGAL = {
    ("pending", "preparing"),
    ("pending", "cancelled"),
    ("preparing", "ready"),
    ("preparing", "cancelled"),
    ("ready", "completed"),
    ("ready", "cancelled"),
}


def test_table_matches_lifecycle():
    edges = {(src.value, dst.value) for src, dests in TRANSITIONS.items() for dst in dests}
    assert edges == LEGAL


@pytest.mark.parametrize("src,dst", sorted(LEGAL))
def test_legal_transitions_return_new_status(src, dst):
    assert transition(src, dst) is OrderStatus(dst)
    assert can_transition(OrderStatus(src), OrderStatus(dst))


@pytest.mark.parametrize(
    "src,dst",
    [
        pair
        for pair in itertools.product([s.value for s in OrderStatus], repeat=2)
        if pair not in LEGAL
    ],
)
def test_every_other_pair_is_rejected(src, dst):
    with pytest.raises(TransitionError) as excinfo:
        transition(src, dst)
    assert excinfo.value.current == src
    assert excinfo.value.requested == dst
    assert excinfo.value.details == {"current": src, "requested": dst}


def test_skipping_intermediate_state_is_rejected():
    with pytest.raises(TransitionError):
        transition(OrderStatus.PENDING, OrderStatus.READY)


def test_same_status_is_rejected():
    with pytest.raises(TransitionError):
        transition("pending", "pending")


def test_unknown_status_strings_are_rejected():
    assert not can_transition("pending", "shipped")
    assert not can_transition("bogus", "pending")
    with pytest.raises(TransitionError) as excinfo:
        transition("pending", "shipped")
    assert excinfo.value.requested == "shipped"


def test_terminal_states_have_no_exits():
    assert TERMINAL_STATUSES == {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    assert ACTIVE_STATUSES == {
        OrderStatus.PENDING,
        OrderStatus.PREPARING,
        OrderStatus.READY,
    }
    for status in ACTIVE_STATUSES:
        assert can_transition(status, OrderStatus.CANCELLED)
