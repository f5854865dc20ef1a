# world3/lookup/tables.py
"""
Digitized World3 lookup tables.

Sources: Meadows et al. "World Dynamics" (1972) and "Beyond the Limits"
(1992). Several tables are re-calibrated so that the compact ten-stock model
reproduces the BAU standard run shape (notes inline).

The whole set is loaded once per process and shared read-only by every run;
no lock is needed since nothing writes after load.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Dict

from world3.lookup.table import LookupTable


def _t(name: str, xs, ys) -> LookupTable:
    return LookupTable(name=name, xs=tuple(xs), ys=tuple(ys))


@dataclass(frozen=True)
class WorldLookupTables:
    # ---------------- Population ----------------
    life_exp_multiplier_food: LookupTable          # x: food ratio
    life_exp_multiplier_health: LookupTable        # x: effective health services per capita [USD]
    life_exp_multiplier_crowding: LookupTable      # x: population / 1970 population
    life_exp_multiplier_pollution: LookupTable     # x: pollution index (1970 = 1)
    desired_family_size: LookupTable               # x: IOPC [USD/person/yr]
    family_planning_multiplier: LookupTable        # x: effective family planning [0..1]
    fraction_services_health: LookupTable
    food_fertility_multiplier: LookupTable         # x: food ratio

    # ---------------- Capital ----------------
    capital_output_ratio_resources: LookupTable    # x: resource fraction remaining
    industrial_fraction_to_agriculture: LookupTable  # x: food ratio
    industrial_fraction_to_services: LookupTable   # x: normalized services per capita
    jobs_per_capital: LookupTable
    labor_force_participation: LookupTable

    # ---------------- Agriculture ----------------
    land_yield_multiplier_capital: LookupTable     # x: agricultural inputs per hectare
    land_yield_multiplier_pollution: LookupTable   # x: pollution index
    land_erosion_multiplier: LookupTable           # x: land yield / 1900 yield
    land_development_cost: LookupTable             # x: fraction of potential land developed

    # ---------------- Resources ----------------
    capital_fraction_resource_extraction: LookupTable  # x: resource fraction remaining

    # ---------------- Pollution ----------------
    pollution_generation_industry: LookupTable     # x: IOPC / 1970 IOPC
    pollution_generation_agriculture: LookupTable  # x: inputs per hectare / 1970 level
    pollution_assimilation_time: LookupTable       # x: pollution index, y: years

    def as_dict(self) -> Dict[str, LookupTable]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@lru_cache(maxsize=1)
def load_world_tables() -> WorldLookupTables:
    """
    Load all tables (cached: one shared instance per process).

    Raises MalformedTable if any digitized table is structurally invalid.
    """
    return WorldLookupTables(
        # Meadows 1972, Table 5-1
        life_exp_multiplier_food=_t(
            "life_exp_multiplier_food",
            [0.0, 1.0, 2.0, 3.0, 4.0, 5.0],
            [0.0, 1.0, 1.43, 1.50, 1.50, 1.50],
        ),
        # < 1.0 means poor health services pull life expectancy below the base
        life_exp_multiplier_health=_t(
            "life_exp_multiplier_health",
            [0.0, 200.0, 400.0, 600.0, 800.0, 1000.0],
            [0.50, 0.76, 1.15, 1.55, 1.78, 2.00],
        ),
        life_exp_multiplier_crowding=_t(
            "life_exp_multiplier_crowding",
            [0.0, 0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0],
            [1.50, 1.40, 1.30, 1.20, 1.10, 1.00, 0.90, 0.80, 0.70, 0.60, 0.50],
        ),
        life_exp_multiplier_pollution=_t(
            "life_exp_multiplier_pollution",
            [0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0],
            [1.0, 0.99, 0.97, 0.95, 0.90, 0.85, 0.75, 0.65, 0.55],
        ),
        # slow demographic transition: family size drops only above ~$400/yr
        desired_family_size=_t(
            "desired_family_size",
            [0.0, 400.0, 800.0, 1200.0, 1600.0],
            [5.0, 4.0, 3.0, 2.1, 1.9],
        ),
        family_planning_multiplier=_t(
            "family_planning_multiplier",
            [0.0, 0.25, 0.5, 0.75, 1.0],
            [1.0, 0.90, 0.75, 0.55, 0.40],
        ),
        fraction_services_health=_t(
            "fraction_services_health",
            [0.0, 0.5, 1.0, 1.5, 2.0],
            [0.3, 0.35, 0.40, 0.45, 0.50],
        ),
        food_fertility_multiplier=_t(
            "food_fertility_multiplier",
            [0.0, 0.5, 1.0, 1.5, 2.0],
            [0.0, 0.6, 1.0, 1.05, 1.1],
        ),
        # ICOR = 3.0 x 0.5 = 1.5 at full resources; capital growth stalls near 0.65
        capital_output_ratio_resources=_t(
            "capital_output_ratio_resources",
            [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
            [4.0, 3.2, 2.6, 2.0, 1.6, 1.25, 0.90, 0.75, 0.62, 0.55, 0.50],
        ),
        industrial_fraction_to_agriculture=_t(
            "industrial_fraction_to_agriculture",
            [0.0, 0.5, 1.0, 1.5, 2.0, 2.5],
            [0.40, 0.25, 0.15, 0.10, 0.07, 0.05],
        ),
        industrial_fraction_to_services=_t(
            "industrial_fraction_to_services",
            [0.0, 0.5, 1.0, 1.5, 2.0],
            [0.30, 0.25, 0.20, 0.15, 0.12],
        ),
        jobs_per_capital=_t(
            "jobs_per_capital",
            [0.0, 0.5, 1.0, 2.0, 3.0, 4.0],
            [0.0007, 0.0014, 0.0017, 0.0018, 0.0019, 0.002],
        ),
        labor_force_participation=_t(
            "labor_force_participation",
            [0.5, 0.6, 0.7, 0.8],
            [0.50, 0.55, 0.60, 0.65],
        ),
        # flatter than Meadows: BAU food per capita stays within ~1.2..3.3x
        # subsistence, so falling food and services end growth by ~2060
        land_yield_multiplier_capital=_t(
            "land_yield_multiplier_capital",
            [0.0, 40.0, 80.0, 120.0, 160.0, 200.0, 240.0, 280.0, 320.0, 360.0, 400.0],
            [1.0, 2.0, 3.0, 3.5, 3.8, 4.0, 4.2, 4.4, 4.6, 4.8, 5.0],
        ),
        land_yield_multiplier_pollution=_t(
            "land_yield_multiplier_pollution",
            [0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0],
            [1.2, 1.0, 0.85, 0.75, 0.65, 0.55, 0.50],
        ),
        land_erosion_multiplier=_t(
            "land_erosion_multiplier",
            [0.0, 0.25, 0.5, 0.75, 1.0, 1.25, 1.5, 1.75, 2.0],
            [0.0, 0.1, 0.3, 0.5, 0.7, 1.0, 1.5, 2.0, 2.5],
        ),
        land_development_cost=_t(
            "land_development_cost",
            [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
            [100.0, 117.0, 137.0, 161.0, 192.0, 232.0, 282.0, 344.0, 418.0, 507.0, 616.0],
        ),
        capital_fraction_resource_extraction=_t(
            "capital_fraction_resource_extraction",
            [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
            [1.0, 0.9, 0.70, 0.50, 0.40, 0.30, 0.20, 0.14, 0.08, 0.04, 0.0],
        ),
        pollution_generation_industry=_t(
            "pollution_generation_industry",
            [0.0, 1.0, 2.0, 3.0, 4.0, 5.0],
            [0.0, 1.0, 1.5, 1.9, 2.16, 2.36],
        ),
        pollution_generation_agriculture=_t(
            "pollution_generation_agriculture",
            [0.0, 1.0, 2.0, 3.0, 4.0],
            [0.0, 1.0, 1.7, 2.2, 2.5],
        ),
        # steeper than Meadows; BAU pollution peaks at index ~1.3 around 2020
        pollution_assimilation_time=_t(
            "pollution_assimilation_time",
            [0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0],
            [20.0, 45.0, 90.0, 150.0, 220.0, 320.0, 480.0],
        ),
    )
