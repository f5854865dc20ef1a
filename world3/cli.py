#!filepath: world3/cli.py
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from world3.model.params import PRESETS, ScenarioParams
from world3.parallel.executor import ParallelExecutor
from world3.parallel.types import ParallelKind
from world3.utils.errors import DivergedError, UserInputError

app = typer.Typer(help="World3 system-dynamics simulator CLI")

__version__ = "0.1.0"


def _preset(name: str) -> ScenarioParams:
    try:
        return PRESETS[name]()
    except KeyError:
        raise UserInputError(
            f"Unknown preset '{name}'. Choose from: {', '.join(PRESETS)}"
        ) from None


def _load_config():
    from world3.config import AppConfig
    from world3.utils.logger import init_logging

    cfg = AppConfig.load()
    init_logging(cfg.log)
    return cfg


def _run_preset_summary(key: str) -> dict:
    """Module level so ProcessPoolExecutor can pickle it."""
    from world3.solver.run import Rk4Solver

    params = PRESETS[key]()
    try:
        out = Rk4Solver().run_batch(params)
    except DivergedError as e:
        return {"preset": key, "name": params.meta.name, "error": str(e)}

    pop = out.extract_series("population.population")
    i_peak = max(range(len(pop)), key=pop.__getitem__)
    final = out.states[-1]
    return {
        "preset": key,
        "name": params.meta.name,
        "peak_population": pop[i_peak],
        "peak_year": out.timeline[i_peak],
        "final_population": final.population.population,
        "final_resources": final.resources.fraction_remaining,
        "peak_pollution": max(out.extract_series("pollution.pollution_index")),
    }


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def presets():
    """
    列出内置 scenario presets
    """
    table = Table(title="Presets")
    for col in ("key", "name", "description"):
        table.add_column(col)
    for key, factory in PRESETS.items():
        p = factory()
        table.add_row(key, p.meta.name, p.meta.description)
    Console().print(table)


@app.command()
def simulate(
    preset: str = typer.Option("bau", help="bau | technology | stabilized"),
    start: float = typer.Option(1900.0, help="start year"),
    end: float = typer.Option(2100.0, help="end year"),
    dt: float = typer.Option(1.0, help="time step [yr]"),
    output: Optional[Path] = typer.Option(None, help="write full trajectory (.parquet or CSV)"),
    chart: Optional[Path] = typer.Option(None, help="write a PNG chart"),
):
    """
    运行单个 preset（批量模式），打印每 10 步的摘要
    """
    from world3 import report
    from world3.solver.run import Rk4Solver

    try:
        params = _preset(preset).with_overrides(start_year=start, end_year=end, time_step=dt)
    except UserInputError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)
    except ValueError as e:
        print(f"[red]Invalid parameters: {escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    print(f"[green]Running {params.meta.name} {start:g} -> {end:g} (dt={dt:g})[/green]")

    try:
        out = Rk4Solver().run_batch(params)
    except DivergedError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    table = Table()
    for h in report.SUMMARY_HEADERS:
        table.add_column(h, justify="right")
    for row in report.summary_rows(out):
        table.add_row(*row)
    Console().print(table)

    if output is not None:
        print(f"[blue]Table written to {report.write_table(out, output)}[/blue]")
    if chart is not None:
        print(f"[blue]Chart written to {report.render_chart(out, chart)}[/blue]")


@app.command()
def validate():
    """
    BAU 参考轨迹校验，失败时退出码 1
    """
    from world3.validation import validate_bau

    result = validate_bau()
    for check in result.checks:
        color = "green" if check.passed else "red"
        print(f"[{color}]{escape(check.line())}[/{color}]")
    print(result.summary())
    if not result.passed:
        raise typer.Exit(code=1)


@app.command()
def compare(
    workers: Optional[int] = typer.Option(None, help="process count (default: cpu count)"),
):
    """
    并行运行所有 presets 并对比
    """
    rows = ParallelExecutor.run(
        kind=ParallelKind.PRESET,
        items=list(PRESETS),
        handler=_run_preset_summary,
        max_workers=workers,
    )

    table = Table(title="Preset comparison")
    for col in ("preset", "peak pop", "peak year", "pop 2100", "NNR 2100", "peak pollution"):
        table.add_column(col, justify="right")
    for r in rows:
        if "error" in r:
            table.add_row(r["preset"], f"[red]{escape(r['error'])}[/red]", "", "", "", "")
            continue
        table.add_row(
            r["preset"],
            f"{r['peak_population']:.2e}",
            f"{r['peak_year']:.0f}",
            f"{r['final_population']:.2e}",
            f"{r['final_resources']:.3f}",
            f"{r['peak_pollution']:.2f}",
        )
    Console().print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="bind host (default from config)"),
    port: Optional[int] = typer.Option(None, help="stream port (default from config)"),
    api_port: Optional[int] = typer.Option(None, help="HTTP API port (default from config)"),
    with_api: bool = typer.Option(True, "--with-api/--no-api", help="also serve the HTTP API"),
):
    """
    启动 streaming server（line-delimited JSON over TCP）+ HTTP API，共用一个 ScenarioStore
    """
    from world3.api import app as api_app
    from world3.streaming.server import serve as serve_stream

    cfg = _load_config()
    host = host or cfg.server.host
    port = port if port is not None else cfg.server.stream_port

    if with_api:
        api_port = api_port if api_port is not None else cfg.server.api_port
        api_app.start_in_thread(host, api_port)
        print(f"[yellow]HTTP API on {host}:{api_port}[/yellow]")

    print(f"[yellow]Streaming server on {host}:{port}[/yellow]")
    try:
        asyncio.run(serve_stream(host, port, store=api_app.STORE, config=cfg.simulation))
    except KeyboardInterrupt:
        print("[yellow]stopped[/yellow]")


@app.command()
def api(
    host: Optional[str] = typer.Option(None, help="bind host (default from config)"),
    port: Optional[int] = typer.Option(None, help="bind port (default from config)"),
):
    """
    启动 HTTP API（Flask）
    """
    from world3.api.app import app as flask_app

    cfg = _load_config()
    flask_app.run(host=host or cfg.server.host,
                  port=port if port is not None else cfg.server.api_port)


if __name__ == "__main__":
    app()

# python -m world3.cli simulate --preset bau --output out/bau.csv
