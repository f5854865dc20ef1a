# world3/model/params.py
"""
Scenario parameters —— UI 上的 "policy levers"。

ScenarioParams is immutable per run: the model is frozen, and every run
takes a private deep copy at start, so an in-flight computation never sees
a concurrent store write.

Two kinds of limits:
- model validation (this file's Field constraints): structural only
  (finite numbers, positive multipliers, positive step, end after start)
- UI slider ranges: parameter_descriptors(), advisory
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _new_id() -> str:
    return uuid.uuid4().hex[:16]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ScenarioMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str = "Unnamed Scenario"
    description: str = ""
    color_hex: str = "#888888"  # chart color, e.g. "#e63946"
    created_at: str = Field(default_factory=_utc_now)


class ScenarioParams(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    meta: ScenarioMeta = Field(default_factory=ScenarioMeta)

    # ---- Population policy ----
    family_planning_year: float = 2000.0        # year of full effectiveness
    family_planning_efficacy: float = Field(0.75, ge=0.0, le=1.0)
    health_investment_multiplier: float = Field(1.0, gt=0.0)

    # ---- Capital / technology ----
    industrial_depreciation_rate: float = Field(0.05, ge=0.0)  # yr^-1
    service_depreciation_rate: float = Field(0.05, ge=0.0)     # yr^-1
    technology_growth_rate: float = Field(0.002, ge=0.0)       # yr^-1
    investment_rate: float = Field(0.12, ge=0.0)               # fraction of IO

    # ---- Agriculture ----
    agricultural_technology: float = Field(1.0, gt=0.0)
    land_protection_fraction: float = Field(0.0, ge=0.0, le=1.0)
    subsistence_food_per_capita: float = Field(230.0, gt=0.0)  # kg/person/yr

    # ---- Resources ----
    resource_efficiency: float = Field(1.0, gt=0.0)
    initial_nnr_fraction: float = Field(1.0, ge=0.0)

    # ---- Pollution ----
    pollution_control: float = Field(0.0, ge=0.0, le=1.0)

    # ---- Solver ----
    start_year: float = 1900.0
    end_year: float = 2100.0
    time_step: float = Field(1.0, gt=0.0)

    @model_validator(mode="after")
    def _check_time_span(self) -> "ScenarioParams":
        if self.end_year <= self.start_year:
            raise ValueError(
                f"end_year ({self.end_year}) must be after start_year ({self.start_year})"
            )
        return self

    def with_overrides(self, **changes) -> "ScenarioParams":
        """
        Validated copy with some fields replaced (model_copy(update=) 不做校验).
        """
        data = self.model_dump()
        data.update(changes)
        return ScenarioParams.model_validate(data)

    def private_copy(self) -> "ScenarioParams":
        return self.model_copy(deep=True)


# -------------------------------------------------------------
# Presets
# -------------------------------------------------------------
def bau() -> ScenarioParams:
    """Business as usual: original World3 standard run, no policy."""
    # fertility is purely demand-driven (desired family size vs IOPC)
    return ScenarioParams(
        meta=ScenarioMeta(
            name="Business as Usual",
            description="Original World 3 standard run. No policy interventions.",
            color_hex="#e63946",
        ),
        family_planning_efficacy=0.0,
    )


def comprehensive_technology() -> ScenarioParams:
    return ScenarioParams(
        meta=ScenarioMeta(
            name="Comprehensive Technology",
            description="Technology solves resource and pollution problems, but no social changes.",
            color_hex="#2a9d8f",
        ),
        resource_efficiency=4.0,
        pollution_control=0.8,
        agricultural_technology=2.0,
        technology_growth_rate=0.02,
    )


def stabilized_world() -> ScenarioParams:
    return ScenarioParams(
        meta=ScenarioMeta(
            name="Stabilized World",
            description=(
                "Combination of technology, pollution control, family planning, "
                "and resource efficiency."
            ),
            color_hex="#457b9d",
        ),
        resource_efficiency=4.0,
        pollution_control=0.8,
        agricultural_technology=2.0,
        technology_growth_rate=0.015,
        family_planning_efficacy=0.95,
        family_planning_year=1975.0,
        land_protection_fraction=0.3,
    )


PRESETS = {
    "bau": bau,
    "technology": comprehensive_technology,
    "stabilized": stabilized_world,
}


# -------------------------------------------------------------
# Slider schema
# -------------------------------------------------------------
class ParameterDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    label: str
    unit: str
    min: float
    max: float
    default: float
    step: float
    sector: str
    description: str


_DESCRIPTORS: List[Dict] = [
    dict(field="family_planning_year", label="Family Planning Year", unit="year",
         min=1950.0, max=2100.0, default=2000.0, step=5.0, sector="population",
         description="Year at which family planning reaches full effectiveness."),
    dict(field="family_planning_efficacy", label="Family Planning Efficacy", unit="fraction",
         min=0.0, max=1.0, default=0.75, step=0.05, sector="population",
         description="Maximum reduction in desired family size from family planning programs."),
    dict(field="health_investment_multiplier", label="Health Investment", unit="multiplier",
         min=0.5, max=3.0, default=1.0, step=0.1, sector="population",
         description="Scales health services spending, affecting life expectancy."),
    dict(field="industrial_depreciation_rate", label="Industrial Capital Depreciation", unit="yr⁻¹",
         min=0.02, max=0.10, default=0.05, step=0.005, sector="capital",
         description="Annual fraction of industrial capital that wears out."),
    dict(field="service_depreciation_rate", label="Service Capital Depreciation", unit="yr⁻¹",
         min=0.02, max=0.10, default=0.05, step=0.005, sector="capital",
         description="Annual fraction of service capital that wears out."),
    dict(field="technology_growth_rate", label="Technology Progress Rate", unit="yr⁻¹",
         min=0.0, max=0.03, default=0.002, step=0.001, sector="capital",
         description="Annual improvement in industrial output per unit capital."),
    dict(field="investment_rate", label="Investment Rate", unit="fraction",
         min=0.0, max=0.4, default=0.12, step=0.01, sector="capital",
         description="Fraction of industrial output reinvested in industrial capital."),
    dict(field="agricultural_technology", label="Agricultural Technology", unit="multiplier",
         min=0.5, max=3.0, default=1.0, step=0.1, sector="agriculture",
         description="Multiplier on land yield (crop improvements, irrigation)."),
    dict(field="land_protection_fraction", label="Land Protection", unit="fraction",
         min=0.0, max=0.5, default=0.0, step=0.05, sector="agriculture",
         description="Fraction of arable land protected from degradation and overuse."),
    dict(field="subsistence_food_per_capita", label="Subsistence Food", unit="kg/person/yr",
         min=150.0, max=400.0, default=230.0, step=10.0, sector="agriculture",
         description="Food per person needed for subsistence."),
    dict(field="resource_efficiency", label="Resource Efficiency", unit="multiplier",
         min=1.0, max=5.0, default=1.0, step=0.25, sector="resources",
         description="Reduces resource use per unit of industrial output."),
    dict(field="pollution_control", label="Pollution Control", unit="fraction",
         min=0.0, max=1.0, default=0.0, step=0.05, sector="pollution",
         description="Fraction by which pollution generation is reduced per unit output."),
]


def parameter_descriptors() -> List[ParameterDescriptor]:
    return [ParameterDescriptor(**d) for d in _DESCRIPTORS]
