"""Connectivity subsystem — probe aggregation, status stream, scheduler."""

from .engine import aggregate
from .models import CombinationPolicy, ProbeDescriptor, Verdict, default_probes
from .monitor import ConnectivityMonitor, get_monitor, reset_monitor
from .options import ConfigHolder, MonitorConfig
from .publisher import StatusPublisher, StatusSubscription
from .registry import ProbeRegistry
from .scheduler import ConnectivityScheduler, SchedulerState

__all__ = [
    "CombinationPolicy",
    "ConfigHolder",
    "ConnectivityMonitor",
    "ConnectivityScheduler",
    "MonitorConfig",
    "ProbeDescriptor",
    "ProbeRegistry",
    "SchedulerState",
    "StatusPublisher",
    "StatusSubscription",
    "Verdict",
    "aggregate",
    "default_probes",
    "get_monitor",
    "reset_monitor",
]
