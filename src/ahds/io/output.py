
from __future__ import annotations
import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List
from loguru import logger

from ..core.datatypes import DecisionOptionUsage, HarvestResults
from ..core.interfaces import IterationState
from ..models.agents import Agent, AgentRole
from ..models.keying import HarvestMode, outcome_key

PREFIX = "output_harvest_"


def remove_old_outputs(out_dir: str | Path) -> int:
    d = Path(out_dir)
    if not d.exists():
        return 0
    n = 0
    for pattern in (f"{PREFIX}*.csv", f"{PREFIX}dump_*.json"):
        for f in d.glob(pattern):
            f.unlink()
            n += 1
    logger.debug("Removed {} old output files from {}", n, d)
    return n


def dump_iteration_state(out_dir: str | Path, iteration: int, snapshot: Dict[str, Any]) -> bool:
    """Write one JSON snapshot; failures are logged and never raised."""
    try:
        d = Path(out_dir)
        d.mkdir(parents=True, exist_ok=True)
        (d / f"{PREFIX}dump_{iteration}.json").write_text(json.dumps(snapshot, indent=1, default=str))
        return True
    except Exception as e:
        logger.warning("Could not write iteration {} dump: {}", iteration, e)
        return False


def append_usage_rows(out_dir: str | Path, agent_id: str, rows: Iterable[DecisionOptionUsage]) -> bool:
    rows = list(rows)
    if not rows:
        return True
    try:
        d = Path(out_dir)
        d.mkdir(parents=True, exist_ok=True)
        path = d / f"{PREFIX}{agent_id}.csv"
        fields = list(DecisionOptionUsage.model_fields.keys())
        new = not path.exists()
        with path.open("a", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=fields)
            if new:
                w.writeheader()
            for r in rows:
                rec = r.model_dump()
                for k in ("activated_do", "activated_do_values", "matched_do"):
                    rec[k] = "|".join(rec[k])
                w.writerow(rec)
        return True
    except Exception as e:
        logger.warning("Could not append usage rows for {}: {}", agent_id, e)
        return False


def usage_rows(iteration: int, agent: Agent, state: IterationState, results: HarvestResults,
               mode: HarvestMode | int) -> List[DecisionOptionUsage]:
    """Per-area decision option usage for one forest manager; metrics default to 0."""
    agent_state = state.get(agent.id)
    if agent.role != AgentRole.FOREST_MANAGER or agent_state is None:
        return []
    rows = []
    for area, history in agent_state.histories.items():
        activated = sorted({o.id: o for o in history.activated}.values(), key=lambda o: o.id)
        matched = sorted({o.id for o in history.matched})
        values = [
            str(agent.variables.get(o.consequent.variable_value) if o.consequent.variable_value else o.consequent.value)
            for o in activated
        ]
        key = outcome_key(mode, agent, area)
        rows.append(DecisionOptionUsage(
            iteration=iteration,
            management_area=area,
            activated_do=[o.id for o in activated],
            activated_do_values=values,
            matched_do=matched,
            most_important_goal=agent_state.ranked_goals[0] if agent_state.ranked_goals else None,
            total_number_of_do=len(agent.decision_options),
            biomass_harvested=results.harvested.get(key, 0.0),
            manage_area_maturity_percent=results.maturity_percent.get(key, 0.0),
            biomass=results.biomass.get(key, 0.0),
        ))
    return rows
