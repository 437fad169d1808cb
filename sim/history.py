"""
Read-only snapshots and sampled history buffers.
"""

from collections import deque
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

import numpy as np

HISTORY_FIELDS = ('time', 'setpoint', 'measured', 'error',
                  'error_p', 'error_i', 'error_d', 'actuation')


@dataclass(frozen=True)
class Snapshot:
    """
    State handed to rendering and charting observers.

    Attributes:
        time: Simulated time (s)
        setpoint: Active setpoint
        measured: Primary measured quantity
        actuation: Last applied (saturated) actuation
        terminal: Failure flag
        failure: Failure kind or None
        mode: 'pid' or 'manual'
        state: Full immutable plant state
        error_p, error_i, error_d: Last PID error terms (0 in manual mode)
    """
    time: float
    setpoint: float
    measured: float
    actuation: float
    terminal: bool
    failure: Optional[str]
    mode: str
    state: Any
    error: float = 0.0
    error_p: float = 0.0
    error_i: float = 0.0
    error_d: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        """Flat dictionary of snapshot and plant fields."""
        data = {k: v for k, v in asdict(self).items() if k != 'state'}
        data.update(asdict(self.state))
        return data


class History:
    """
    Column buffers of sampled snapshots.

    With maxlen set, the oldest samples are evicted first.
    """

    def __init__(self, maxlen: Optional[int] = None):
        self.maxlen = maxlen
        self._columns = {name: deque(maxlen=maxlen) for name in HISTORY_FIELDS}

    def append(self, snapshot: Snapshot) -> None:
        for name in HISTORY_FIELDS:
            self._columns[name].append(getattr(snapshot, name))

    def clear(self) -> None:
        for column in self._columns.values():
            column.clear()

    def __len__(self) -> int:
        return len(self._columns['time'])

    def __getitem__(self, name: str) -> np.ndarray:
        return np.array(self._columns[name], dtype=float)

    def to_arrays(self) -> Dict[str, np.ndarray]:
        return {name: self[name] for name in HISTORY_FIELDS}
