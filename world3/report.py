# world3/report.py
"""
Renderers for a finished SimulationOutput: CSV / Parquet table, PNG chart,
text summary.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import pyarrow as pa  # noqa: E402
import pyarrow.parquet as pq  # noqa: E402

from world3.output import SimulationOutput  # noqa: E402

# (csv column, dotted path)
CSV_COLUMNS: List[Tuple[str, str]] = [
    ("population", "population.population"),
    ("cohort_0_14", "population.cohort_0_14"),
    ("cohort_15_44", "population.cohort_15_44"),
    ("cohort_45_64", "population.cohort_45_64"),
    ("cohort_65_plus", "population.cohort_65_plus"),
    ("birth_rate", "population.birth_rate"),
    ("death_rate", "population.death_rate"),
    ("life_expectancy", "population.life_expectancy"),
    ("fertility_rate", "population.fertility_rate"),
    ("industrial_capital", "capital.industrial_capital"),
    ("service_capital", "capital.service_capital"),
    ("industrial_output", "capital.industrial_output"),
    ("industrial_output_per_capita", "capital.industrial_output_per_capita"),
    ("service_output_per_capita", "capital.service_output_per_capita"),
    ("arable_land", "agriculture.arable_land"),
    ("food", "agriculture.food"),
    ("food_per_capita", "agriculture.food_per_capita"),
    ("land_yield", "agriculture.land_yield"),
    ("nnr_fraction", "resources.fraction_remaining"),
    ("persistent_pollution", "pollution.persistent_pollution"),
    ("pollution_index", "pollution.pollution_index"),
]

# panel title -> [(label, dotted path, scale)]
CHART_PANELS: List[Tuple[str, Sequence[Tuple[str, str, float]]]] = [
    ("Population", [
        ("Population (B)", "population.population", 1e-9),
        ("Life Expectancy (yr)", "population.life_expectancy", 1.0),
    ]),
    ("Capital", [
        ("Ind. Output/cap ($/yr)", "capital.industrial_output_per_capita", 1.0),
        ("Svc. Output/cap ($/yr)", "capital.service_output_per_capita", 1.0),
    ]),
    ("Agriculture", [
        ("Food/cap (kg/yr)", "agriculture.food_per_capita", 1.0),
        ("Land Yield (kg/ha)", "agriculture.land_yield", 1.0),
    ]),
    ("Non-Renewable Resources", [
        ("NNR Fraction Remaining", "resources.fraction_remaining", 1.0),
    ]),
    ("Pollution", [
        ("Pollution Index", "pollution.pollution_index", 1.0),
    ]),
]


def to_table(output: SimulationOutput) -> pd.DataFrame:
    data = {"year": output.timeline}
    for column, path in CSV_COLUMNS:
        data[column] = output.extract_series(path)
    return pd.DataFrame(data)


def write_csv(output: SimulationOutput, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_table(output).to_csv(path, index=False, float_format="%.6g")
    return path


def write_parquet(output: SimulationOutput, path: str | Path) -> Path:
    """
    Same columns as the CSV, plus scenario identity in the schema metadata.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    table = pa.Table.from_pandas(to_table(output), preserve_index=False)
    table = table.replace_schema_metadata({
        **(table.schema.metadata or {}),
        b"scenario_id": output.scenario_id.encode(),
        b"scenario_name": output.scenario_name.encode(),
        b"computed_at": output.computed_at.encode(),
    })
    pq.write_table(table, path)
    return path


def write_table(output: SimulationOutput, path: str | Path) -> Path:
    """Parquet for *.parquet, CSV otherwise."""
    if Path(path).suffix == ".parquet":
        return write_parquet(output, path)
    return write_csv(output, path)


def render_chart(output: SimulationOutput, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, axes = plt.subplots(len(CHART_PANELS), 1, figsize=(12, 2.2 * len(CHART_PANELS)),
                             sharex=True)
    for ax, (title, series) in zip(axes, CHART_PANELS):
        for label, field, scale in series:
            ax.plot(output.timeline, [v * scale for v in output.extract_series(field)],
                    label=label)
        ax.set_title(title)
        ax.legend(loc="upper left", fontsize="small")
    axes[-1].set_xlabel("Year")
    fig.suptitle(f"World 3 Simulation: {output.scenario_name}")
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def summary_rows(output: SimulationOutput, every: int = 10) -> List[Tuple[str, ...]]:
    """Rows for the decade summary table (every `every`-th state)."""
    rows = []
    for s in output.states[::every]:
        rows.append((
            f"{s.time:.0f}",
            f"{s.population.population:.2e}",
            f"{s.agriculture.food_per_capita:.1f}",
            f"{s.capital.industrial_output_per_capita:.1f}",
            f"{s.resources.fraction_remaining * 100:.1f}",
            f"{s.pollution.pollution_index:.2f}",
        ))
    return rows


SUMMARY_HEADERS = ("Year", "Population", "Food/cap", "Ind.Out/cap", "NNR%", "PollIdx")
