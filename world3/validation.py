# world3/validation.py
"""
Reference-trajectory validation of the business-as-usual run.

Loose historical / Meadows 1972 bands, not a calibration: they catch a
model that has drifted into a qualitatively different world.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from world3.model.params import bau
from world3.output import SimulationOutput
from world3.solver.run import Rk4Solver
from world3.utils.logger import logs


@dataclass(frozen=True)
class Check:
    name: str
    passed: bool
    detail: str

    def line(self) -> str:
        return f"[{'PASS' if self.passed else 'FAIL'}] {self.name}: {self.detail}"


@dataclass
class ValidationReport:
    checks: List[Check] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def n_passed(self) -> int:
        return sum(c.passed for c in self.checks)

    def summary(self) -> str:
        return f"{self.n_passed}/{len(self.checks)} checks passed"


def _in_range(name: str, value: float, lo: float, hi: float) -> Check:
    return Check(name, lo <= value <= hi, f"{value:.3e} (expected {lo:.1e}..{hi:.1e})")


def check_output(output: SimulationOutput) -> ValidationReport:
    report = ValidationReport()

    pop = output.extract_series("population.population")
    years = output.timeline

    p1900 = output.state_at_year(1900.0)
    p1970 = output.state_at_year(1970.0)
    s2100 = output.state_at_year(2100.0)

    report.checks.append(_in_range("population 1900", p1900.population.population, 1e9, 2.5e9))
    report.checks.append(_in_range("population 1970", p1970.population.population, 2.5e9, 5e9))

    i_peak = max(range(len(pop)), key=pop.__getitem__)
    report.checks.append(_in_range("population peak", pop[i_peak], 6e9, 12e9))
    report.checks.append(
        Check(
            "population peak year",
            2000.0 <= years[i_peak] <= 2070.0,
            f"{years[i_peak]:.0f} (expected 2000..2070)",
        )
    )

    fr = s2100.resources.fraction_remaining
    report.checks.append(Check("resources 2100", fr < 0.7, f"{fr:.3f} (expected < 0.7)"))

    peak_pollution = max(output.extract_series("pollution.pollution_index"))
    report.checks.append(
        Check("pollution peak", peak_pollution >= 0.5, f"{peak_pollution:.3f} (expected >= 0.5)")
    )

    return report


def validate_bau(solver: Optional[Rk4Solver] = None) -> ValidationReport:
    """Run BAU 1900..2100 at dt = 1 and check it against the reference bands."""
    solver = solver or Rk4Solver()
    params = bau().with_overrides(start_year=1900.0, end_year=2100.0, time_step=1.0)
    report = check_output(solver.run_batch(params))
    logs.info(f"[Validation] {report.summary()}")
    return report
