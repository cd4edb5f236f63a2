"""Central enum-like definitions for permission codes carried in the JWT ``perms`` claim.
Each account role maps to a fixed preset; admins get every code.
"""
from __future__ import annotations
from typing import Dict, List

SERVICE_ACTIONS = {
    'ORDER': ['READ', 'CREATE', 'CONFIRM', 'DELIVER', 'RECEIVE', 'CANCEL', 'PAY'],
    'TOKEN': ['READ', 'SPEND'],
    'SUB': ['READ', 'CREATE', 'APPROVE', 'REJECT', 'STATS'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    # Farmer: sells products, drives confirm/deliver, spends tokens, buys subscriptions
    'farmer': [
        'ORDER.READ', 'ORDER.CONFIRM', 'ORDER.DELIVER', 'ORDER.CANCEL', 'ORDER.PAY',
        'TOKEN.READ', 'TOKEN.SPEND',
        'SUB.READ', 'SUB.CREATE',
    ],
    # Customer: places orders and confirms receipt
    'customer': [
        'ORDER.READ', 'ORDER.CREATE', 'ORDER.RECEIVE', 'ORDER.CANCEL',
    ],
    'admin': ['*'],
}


def permissions_for_role(role: str) -> List[str]:
    codes = ROLE_PRESETS.get(role, [])
    if '*' in codes:
        return list(ALL_PERMISSION_CODES)
    return list(codes)
