"""KPI extraction and analysis for ambulance fleet simulations."""

from ambulance_fleet.analysis.kpis import DispatchKPIs, compute_all_kpis, compute_dispatch_kpis

__all__ = [
    "DispatchKPIs",
    "compute_all_kpis",
    "compute_dispatch_kpis",
]
