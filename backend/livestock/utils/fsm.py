from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Used by lifecycle models (Order, Subscription). Usage:
    from livestock.utils.fsm import TransitionValidator
    SUB_FSM = TransitionValidator({
        'pending': {'approved', 'rejected'},
        'approved': set(),
        'rejected': set(),
    })
    SUB_FSM.can_transition(current_status, target_status)   # pure check
    SUB_FSM.sources_of(target_status)  # states a guarded UPDATE may start from
"""
from typing import Dict, Hashable, Set, FrozenSet


class TransitionValidator:
    def __init__(self, graph: Dict[Hashable, Set[Hashable]]):
        self.graph: Dict[Hashable, FrozenSet[Hashable]] = {k: frozenset(v) for k, v in graph.items()}

    def allowed_from(self, current) -> FrozenSet:
        return self.graph.get(current, frozenset())

    def can_transition(self, current, target) -> bool:
        return target in self.allowed_from(current)

    def is_terminal(self, state) -> bool:
        return not self.allowed_from(state)

    def sources_of(self, target) -> FrozenSet:
        return frozenset(state for state, targets in self.graph.items() if target in targets)

__all__ = ['TransitionValidator']
