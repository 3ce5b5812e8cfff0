"""Connectivity-change trigger sources."""

from __future__ import annotations

from .base import CallbackTrigger, TriggerHandle, TriggerSource
from .link_state import LinkStateTrigger, interfaces_up

__all__ = [
    "CallbackTrigger",
    "LinkStateTrigger",
    "TriggerHandle",
    "TriggerSource",
    "interfaces_up",
]
