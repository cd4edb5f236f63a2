from livestock.utils.fsm import TransitionValidator
from livestock.models.order import ORDER_FSM, OrderStatus
from livestock.models.subscription import SUBSCRIPTION_FSM, SubscriptionStatus


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.can_transition('A', 'B') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.can_transition('A', 'C') is False
    assert fsm.can_transition('B', 'A') is False


def test_unknown_state_has_no_exits():
    fsm = TransitionValidator({'A': {'B'}})
    assert fsm.allowed_from('Z') == frozenset()
    assert fsm.is_terminal('Z')


def test_sources_of_lists_every_entry_state():
    fsm = TransitionValidator({'A': {'C'}, 'B': {'C'}, 'C': set()})
    assert fsm.sources_of('C') == {'A', 'B'}
    assert fsm.sources_of('A') == frozenset()


def test_order_graph_only_moves_forward():
    assert ORDER_FSM.sources_of(OrderStatus.CANCELLED) == {OrderStatus.PENDING, OrderStatus.CONFIRMED}
    assert ORDER_FSM.sources_of(OrderStatus.DELIVERED) == {OrderStatus.CONFIRMED}
    assert ORDER_FSM.sources_of(OrderStatus.PENDING) == frozenset()
    # no skips, no way back
    assert not ORDER_FSM.can_transition(OrderStatus.PENDING, OrderStatus.DELIVERED)
    assert not ORDER_FSM.can_transition(OrderStatus.DELIVERED, OrderStatus.CANCELLED)
    assert not ORDER_FSM.can_transition(OrderStatus.CONFIRMED, OrderStatus.PENDING)
    assert ORDER_FSM.is_terminal(OrderStatus.RECEIVED)
    assert ORDER_FSM.is_terminal(OrderStatus.CANCELLED)


def test_subscription_decisions_are_final():
    assert SUBSCRIPTION_FSM.is_terminal(SubscriptionStatus.APPROVED)
    assert SUBSCRIPTION_FSM.is_terminal(SubscriptionStatus.REJECTED)
    assert SUBSCRIPTION_FSM.sources_of(SubscriptionStatus.APPROVED) == {SubscriptionStatus.PENDING}
    assert SUBSCRIPTION_FSM.sources_of(SubscriptionStatus.PENDING) == frozenset()
