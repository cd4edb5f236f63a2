from __future__ import annotations
"""Typed result of a domain mutation.

Mutators never raise for bad input or an illegal transition; they return an
``Outcome`` that is truthy only when the change was applied. A rejected outcome
always means the entity was left untouched.
"""
from dataclasses import dataclass
from typing import Optional

ILLEGAL_TRANSITION = 'illegal_transition'
UNKNOWN_PRODUCT = 'unknown_product'
INVALID_QUANTITY = 'invalid_quantity'
INVALID_AMOUNT = 'invalid_amount'
INSUFFICIENT_TOKENS = 'insufficient_tokens'
ALREADY_PROCESSED = 'already_processed'
NOT_PRESENT = 'not_present'
NOT_FOUND = 'not_found'
INVALID_PACKAGE = 'invalid_package'
DUPLICATE_TRANSACTION = 'duplicate_transaction'
CONCURRENT_UPDATE = 'concurrent_update'


@dataclass(frozen=True)
class Outcome:
    applied: bool
    reason: Optional[str] = None
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.applied

    @classmethod
    def ok(cls) -> 'Outcome':
        return cls(True)

    @classmethod
    def rejected(cls, reason: str, detail: Optional[str] = None) -> 'Outcome':
        return cls(False, reason, detail)

__all__ = [
    'Outcome', 'ILLEGAL_TRANSITION', 'UNKNOWN_PRODUCT', 'INVALID_QUANTITY',
    'INVALID_AMOUNT', 'INSUFFICIENT_TOKENS', 'ALREADY_PROCESSED', 'NOT_PRESENT', 'NOT_FOUND',
    'INVALID_PACKAGE', 'DUPLICATE_TRANSACTION', 'CONCURRENT_UPDATE',
]
