from __future__ import annotations

from paine.loadgen.client import HttpProbe, Probe, send_probe
from paine.loadgen.dispatcher import Dispatcher
from paine.loadgen.runner import run_load_test
from paine.loadgen.scheduler import DispatchTick, planned_tick_count, tick_offsets, ticks

__all__ = [
    "DispatchTick",
    "Dispatcher",
    "HttpProbe",
    "Probe",
    "planned_tick_count",
    "run_load_test",
    "send_probe",
    "tick_offsets",
    "ticks",
]
