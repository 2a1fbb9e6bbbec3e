
from __future__ import annotations
import typer
from pathlib import Path
from rich import print
from loguru import logger
from ..core.config import load_config
from ..core.errors import AhdsError
from ..core.sim import HarvestDecisionSimulator

app = typer.Typer(no_args_is_help=True, help="AHDS — Agent Harvest Decision Simulation")

EXAMPLE_AGENTS = {
    "prototypes": {
        "FM": {
            "name_prefix": "FM",
            "role": "forest_manager",
            "goals": ["ManageAreaMaturityPercent", "ManageAreaHarvested"],
            "decision_options": [
                {"id": "DO1", "origin": "MM1-P1", "management_area": "MM1",
                 "consequent": {"param": "PercentOfHarvestArea", "value": 20.0}},
                {"id": "DO2", "origin": "MM2-P1", "management_area": "MM2",
                 "consequent": {"param": "PercentOfHarvestArea", "value": 20.0}},
            ],
        },
        "HM": {"name_prefix": "HM", "role": "household_member"},
    },
    "initial_state": [
        {"prototype": "FM", "name": "FM1", "assigned_areas": ["MM1", "MM2"],
         "assigned_decision_options": ["DO1", "DO2"], "variables": {"MaturityTarget": 40.0}},
        {"prototype": "HM", "number_of_agents": 2,
         "variables": {"Household": "H1", "Age": 30, "Income": 100.0, "Expenses": 60.0}},
    ],
}

def _configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        logger.remove()
        logger.add(lambda m: print(m, end=""), level="DEBUG")
    elif quiet:
        logger.remove()
        logger.add(lambda m: print(m, end=""), level="WARNING")

@app.command("init")
def init_cmd(target: str = typer.Argument("examples/minimal", help="Write example files to target")):
    import yaml
    dst = Path(target)
    (dst / "configs").mkdir(parents=True, exist_ok=True)
    cfg = {
        "agents_path": "agents.yaml",
        "horizon": {"start_time": 0, "end_time": 10, "timestep": 1},
        "harvest": {"mode": 2},
        "cognition": {"name": "threshold_rules", "iterations_per_timestep": 1, "params": {"innovation_step": 5.0}},
        "landscape": {"name": "in_memory", "params": {"growth_rate": 0.02}},
        "demographic": {"enabled": False},
        "run": {"out_dir": str((dst / "runs").resolve())},
    }
    (dst / "configs" / "minimal.yaml").write_text(yaml.safe_dump(cfg, sort_keys=False))
    (dst / "configs" / "agents.yaml").write_text(yaml.safe_dump(EXAMPLE_AGENTS, sort_keys=False))
    print(f"[green]Initialized examples at {dst}[/green]")

@app.command("run-sim")
def run_sim(config: str = typer.Option(..., "--config", "-c", help="Path to YAML config"),
            verbose: bool = typer.Option(False, "--verbose", "-v", help="DEBUG logging"),
            quiet: bool = typer.Option(False, "--quiet", "-q", help="Only WARN+")):
    _configure_logging(verbose, quiet)
    cfg = load_config(config)
    if not (verbose or quiet):
        logger.remove()
        logger.add(lambda m: print(m, end=""), level=cfg.run.log_level.upper())
    sim = HarvestDecisionSimulator(cfg)
    try:
        res = sim.run()
    except AhdsError as e:
        print(f"[bold red]Simulation failed:[/bold red] {e}")
        raise typer.Exit(code=1)
    print("[bold green]Simulation finished[/bold green]", {k: v for k, v in res.items() if k != "results"})

@app.command("plugins")
def plugins_cmd():
    from ..plugins.registry import names
    for n in names():
        print(n)

def main():
    app()
