"""Order status state machine."""
import pytest

from marketplace.core.errors import InvalidTransition
from marketplace.models.order import OrderStatus
from marketplace.workflow.transitions import ALLOWED_TRANSITIONS, ensure_transition, is_terminal

FORWARD = [
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.CONFIRMED, OrderStatus.PREPARING),
    (OrderStatus.PREPARING, OrderStatus.SENT_TO_DELIVERY),
    (OrderStatus.SENT_TO_DELIVERY, OrderStatus.DELIVERED),
]


@pytest.mark.parametrize("current,target", FORWARD)
def test_forward_steps_are_allowed(current, target):
    ensure_transition(current, target)


@pytest.mark.parametrize(
    "current",
    [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.SENT_TO_DELIVERY],
)
def test_cancel_from_any_open_status(current):
    ensure_transition(current, OrderStatus.CANCELLED)


@pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
@pytest.mark.parametrize("target", list(OrderStatus))
def test_terminal_statuses_are_final(terminal, target):
    assert is_terminal(terminal)
    with pytest.raises(InvalidTransition):
        ensure_transition(terminal, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (OrderStatus.PENDING, OrderStatus.DELIVERED),
        (OrderStatus.PENDING, OrderStatus.PREPARING),
        (OrderStatus.PREPARING, OrderStatus.PENDING),
        (OrderStatus.CONFIRMED, OrderStatus.CONFIRMED),
    ],
)
def test_skips_and_reversals_are_rejected(current, target):
    with pytest.raises(InvalidTransition):
        ensure_transition(current, target)


def test_every_status_has_an_entry():
    assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)
