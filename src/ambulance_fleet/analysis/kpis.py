"""KPI calculations for simulation results.

This module computes dispatch Key Performance Indicators from a
simulation event log: how long calls waited for an ambulance, how long
until one was on scene, and how the fleet shared the work.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd

from ambulance_fleet.models.enums import EventType, Priority
from ambulance_fleet.simulation.events import EventLog

PRIORITY_NAMES = {
    Priority.CRITICAL.value: "P1 (Critical)",
    Priority.HIGH.value: "P2 (High)",
    Priority.NORMAL.value: "P3 (Normal)",
}


def _to_python(value: Any) -> Any:
    """Convert numpy/pandas types to native Python types for JSON serialization."""
    if value is None:
        return None
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return None if np.isnan(value) else float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, pd.Series):
        return value.tolist()
    if isinstance(value, dict):
        return {k: _to_python(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_python(v) for v in value]
    return value


@dataclass
class DispatchKPIs:
    """Key Performance Indicators for emergency dispatch."""

    # Counts
    total_emergencies: int = 0
    dispatched: int = 0
    on_scene: int = 0
    handled: int = 0
    pending: int = 0
    rejected_intake: int = 0

    # Time metrics (seconds)
    mean_wait_time: Optional[float] = None
    median_wait_time: Optional[float] = None
    max_wait_time: Optional[float] = None
    p90_wait_time: Optional[float] = None

    mean_response_time: Optional[float] = None
    median_response_time: Optional[float] = None
    max_response_time: Optional[float] = None
    p90_response_time: Optional[float] = None

    # By priority
    by_priority: dict[int, dict[str, Any]] = field(default_factory=dict)

    # Fleet
    missions_by_vehicle: dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialisation."""
        return _to_python({
            "total_emergencies": self.total_emergencies,
            "dispatched": self.dispatched,
            "on_scene": self.on_scene,
            "handled": self.handled,
            "pending": self.pending,
            "rejected_intake": self.rejected_intake,
            "mean_wait_time_s": self.mean_wait_time,
            "median_wait_time_s": self.median_wait_time,
            "max_wait_time_s": self.max_wait_time,
            "p90_wait_time_s": self.p90_wait_time,
            "mean_response_time_s": self.mean_response_time,
            "median_response_time_s": self.median_response_time,
            "max_response_time_s": self.max_response_time,
            "p90_response_time_s": self.p90_response_time,
            "by_priority": self.by_priority,
            "missions_by_vehicle": self.missions_by_vehicle,
        })

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "=== Dispatch KPIs ===",
            "",
            "Emergency Counts:",
            f"  Total:      {self.total_emergencies}",
            f"  Dispatched: {self.dispatched}",
            f"  On scene:   {self.on_scene}",
            f"  Handled:    {self.handled}",
            f"  Pending:    {self.pending}",
            f"  Rejected:   {self.rejected_intake}",
            "",
            "Wait Time (intake → dispatch):",
            f"  Mean:   {self._fmt(self.mean_wait_time)} s",
            f"  Median: {self._fmt(self.median_wait_time)} s",
            f"  Max:    {self._fmt(self.max_wait_time)} s",
            f"  P90:    {self._fmt(self.p90_wait_time)} s",
            "",
            "Response Time (intake → on scene):",
            f"  Mean:   {self._fmt(self.mean_response_time)} s",
            f"  Median: {self._fmt(self.median_response_time)} s",
            f"  Max:    {self._fmt(self.max_response_time)} s",
            f"  P90:    {self._fmt(self.p90_response_time)} s",
        ]

        if self.by_priority:
            lines.extend(["", "By Priority:"])
            for p, stats in sorted(self.by_priority.items()):
                pname = PRIORITY_NAMES.get(p, f"P{p}")
                lines.append(
                    f"  {pname}: {stats['count']} calls, "
                    f"mean response {self._fmt(stats.get('mean_response'))} s"
                )

        if self.missions_by_vehicle:
            lines.extend(["", "Missions by Ambulance:"])
            for vid, count in sorted(self.missions_by_vehicle.items()):
                lines.append(f"  A{vid}: {count}")

        return "\n".join(lines)

    @staticmethod
    def _fmt(value: Optional[float]) -> str:
        return f"{value:.1f}" if value is not None else "N/A"


def compute_dispatch_kpis(event_log: EventLog) -> DispatchKPIs:
    """Compute dispatch KPIs from simulation event log.

    Args:
        event_log: Completed simulation event log

    Returns:
        DispatchKPIs with all computed metrics
    """
    kpis = DispatchKPIs()
    kpis.rejected_intake = len(event_log.filter_by_type(EventType.INTAKE_REJECTED))

    emergencies = event_log.emergencies
    kpis.total_emergencies = len(emergencies)

    if not emergencies:
        return kpis

    df = event_log.emergencies_to_dataframe()

    kpis.dispatched = int(df["time_dispatched"].notna().sum())
    kpis.on_scene = int(df["time_on_scene"].notna().sum())
    kpis.handled = int(df["time_cleared"].notna().sum())
    kpis.pending = kpis.total_emergencies - kpis.dispatched

    wait_times = df["wait_time_s"].dropna()
    if len(wait_times) > 0:
        kpis.mean_wait_time = float(wait_times.mean())
        kpis.median_wait_time = float(wait_times.median())
        kpis.max_wait_time = float(wait_times.max())
        kpis.p90_wait_time = float(wait_times.quantile(0.9))

    response_times = df["response_time_s"].dropna()
    if len(response_times) > 0:
        kpis.mean_response_time = float(response_times.mean())
        kpis.median_response_time = float(response_times.median())
        kpis.max_response_time = float(response_times.max())
        kpis.p90_response_time = float(response_times.quantile(0.9))

    for priority in sorted(df["priority"].unique()):
        pdata = df[df["priority"] == priority]
        pwait = pdata["wait_time_s"].dropna()
        presp = pdata["response_time_s"].dropna()

        kpis.by_priority[int(priority)] = {
            "count": int(len(pdata)),
            "dispatched": int(pdata["time_dispatched"].notna().sum()),
            "handled": int(pdata["time_cleared"].notna().sum()),
            "mean_wait": float(pwait.mean()) if len(pwait) > 0 else None,
            "mean_response": float(presp.mean()) if len(presp) > 0 else None,
            "max_response": float(presp.max()) if len(presp) > 0 else None,
        }

    vehicles = df["dispatched_vehicle"].dropna().astype(int)
    kpis.missions_by_vehicle = {
        int(vid): int(count) for vid, count in vehicles.value_counts().items()
    }

    return kpis


def compute_all_kpis(event_log: EventLog) -> dict[str, Any]:
    """Compute all KPIs from event log.

    All values are JSON-serializable (native Python types).
    """
    return {
        "dispatch": compute_dispatch_kpis(event_log).to_dict(),
    }
