from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List
import yaml
import logging

from pydantic import ValidationError

from ..core.config import AhdsConfig
from ..core.datatypes import HarvestRule, ManagementArea, Prescription, Species
from ..core.errors import ConfigurationError
from ..models.agents import AgentConfiguration
from ..adapters.landscape import InMemoryLandscape
from .readers import synthesize_landscape

logger = logging.getLogger(__name__)


def _read_yaml(path_or_dict: str | Path | Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(path_or_dict, dict):
        return path_or_dict
    p = Path(path_or_dict)
    return yaml.safe_load(p.read_text()) or {}


def load_agents(path_or_dict: str | Path | Dict[str, Any]) -> AgentConfiguration:
    """Prototypes and initial agent state, from YAML or an already-parsed dict."""
    d = _read_yaml(path_or_dict)
    try:
        conf = AgentConfiguration.model_validate(d)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid agent configuration: {e}") from e
    logger.info("Loaded %d agent prototypes and %d initial-state entries",
                len(conf.prototypes), len(conf.initial_state))
    return conf


def _prescriptions(area: str, rows: List[Dict[str, Any]]) -> List[Prescription]:
    out = []
    for r in rows:
        r = dict(r)
        rule = HarvestRule(
            name=r.pop("name"),
            cut_fraction=float(r.pop("cut_fraction", 1.0)),
            min_age=int(r.pop("min_age", 0)),
        )
        out.append(Prescription(rule=rule, area=area, **r))
    return out


def load_landscape(path_or_dict: str | Path | Dict[str, Any], **params) -> InMemoryLandscape:
    """
    YAML layout:

      cell_area: 100
      species: [{name: abiebals, maturity: 25}, ...]
      areas:
        - name: MM1
          stands: [{id: ..., sites: [{id: ..., cohorts: [{species, age, biomass}]}]}]
          prescriptions: [{name, cut_fraction, min_age, harvest_area_percent, stands_percent, begin_time, end_time}]
    """
    d = dict(_read_yaml(path_or_dict))
    try:
        species = [Species.model_validate(s) for s in d.get("species", [])]
        areas: List[ManagementArea] = []
        prescriptions: List[Prescription] = []
        for a in d.get("areas", []):
            a = dict(a)
            rows = a.pop("prescriptions", [])
            area = ManagementArea.model_validate(a)
            areas.append(area)
            prescriptions.extend(_prescriptions(area.name, rows))
    except (ValidationError, KeyError, TypeError) as e:
        raise ConfigurationError(f"Invalid landscape definition: {e}") from e
    if "cell_area" in d:
        params.setdefault("cell_area", float(d["cell_area"]))
    logger.info("Loaded landscape: %d species, %d areas, %d base prescriptions",
                len(species), len(areas), len(prescriptions))
    return InMemoryLandscape(species, areas, prescriptions=prescriptions, **params)


def build_landscape(cfg: AhdsConfig) -> InMemoryLandscape:
    params = dict(cfg.landscape.params)
    params.setdefault("start_time", cfg.horizon.start_time)
    params.setdefault("timestep", cfg.horizon.timestep)
    if cfg.landscape.data_path:
        logger.info("Loading landscape from %s", cfg.landscape.data_path)
        return load_landscape(cfg.landscape.data_path, **params)
    logger.info("No landscape data_path; synthesizing a small landscape")
    return synthesize_landscape(seed=cfg.run.random_seed, **params)


def agent_configuration(cfg: AhdsConfig) -> AgentConfiguration:
    if cfg.agents is not None:
        return load_agents(cfg.agents)
    if cfg.agents_path:
        return load_agents(cfg.agents_path)
    raise ConfigurationError("Agent prototypes were not defined. Set 'agents_path' or 'agents' in the configuration")
