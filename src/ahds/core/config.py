# ahds/core/config.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import pathlib
import yaml

# ---------- leaf configs ----------
@dataclass
class HorizonConfig:
    start_time: int = 0
    end_time: int = 10
    timestep: int = 1

@dataclass
class HarvestConfig:
    mode: int = 2  # 1: per (agent, area) keys, 2: per area keys
    maturity_epsilon: float = 1e-4

@dataclass
class CognitionConfig:
    name: str = "threshold_rules"
    iterations_per_timestep: int = 1
    params: Dict[str, Any] = field(default_factory=dict)

@dataclass
class LandscapeConfig:
    name: str = "in_memory"
    data_path: Optional[str] = None  # YAML landscape; synthesized when absent
    params: Dict[str, Any] = field(default_factory=dict)

@dataclass
class DemographicConfig:
    enabled: bool = False
    name: str = "probability_tables"
    params: Dict[str, Any] = field(default_factory=dict)

@dataclass
class ProbabilityConfig:
    variable: str = ""
    file_path: str = ""
    variable_type: str = "real"
    with_header: bool = True

@dataclass
class RunConfig:
    random_seed: int = 42
    log_level: str = "INFO"
    out_dir: str = "runs/default"
    write_outputs: bool = True

# ---------- helpers ----------
def _as(cls, obj, defaults: Optional[Dict[str, Any]] = None):
    """Coerce a possibly-dict `obj` into dataclass `cls` (overlaying defaults)."""
    if isinstance(obj, cls):
        return obj
    if isinstance(obj, dict):
        base = {} if defaults is None else dict(defaults)
        base.update(obj)
        return cls(**base)  # type: ignore[arg-type]
    # nothing provided: build from defaults or empty
    return cls(**({} if defaults is None else defaults))  # type: ignore[arg-type]

def _as_list(cls, objs) -> List[Any]:
    return [_as(cls, o, cls().__dict__) for o in (objs or [])]

# ---------- top-level ----------
@dataclass
class AhdsConfig:
    horizon: HorizonConfig = field(default_factory=HorizonConfig)
    harvest: HarvestConfig = field(default_factory=HarvestConfig)
    cognition: CognitionConfig = field(default_factory=CognitionConfig)
    landscape: LandscapeConfig = field(default_factory=LandscapeConfig)
    demographic: DemographicConfig = field(default_factory=DemographicConfig)
    probabilities: List[ProbabilityConfig] = field(default_factory=list)
    run: RunConfig = field(default_factory=RunConfig)
    agents_path: Optional[str] = None
    agents: Optional[Dict[str, Any]] = None  # inline alternative to agents_path

    def __post_init__(self):
        # Coerce any stray dicts into the right dataclasses
        self.horizon = _as(HorizonConfig, self.horizon, HorizonConfig().__dict__)
        self.harvest = _as(HarvestConfig, self.harvest, HarvestConfig().__dict__)
        self.cognition = _as(CognitionConfig, self.cognition, CognitionConfig().__dict__)
        self.landscape = _as(LandscapeConfig, self.landscape, LandscapeConfig().__dict__)
        self.demographic = _as(DemographicConfig, self.demographic, DemographicConfig().__dict__)
        self.probabilities = _as_list(ProbabilityConfig, self.probabilities)
        self.run = _as(RunConfig, self.run, RunConfig().__dict__)
        if self.horizon.timestep <= 0:
            raise ValueError("horizon.timestep must be > 0")
        if self.cognition.iterations_per_timestep < 1:
            raise ValueError("cognition.iterations_per_timestep must be >= 1")
        if isinstance(self.harvest.mode, bool) or self.harvest.mode not in (1, 2):
            raise ValueError(f"harvest.mode must be 1 or 2 (one mode per run), got {self.harvest.mode!r}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AhdsConfig":
        d = d or {}
        return cls(
            horizon=_as(HorizonConfig, d.get("horizon"), HorizonConfig().__dict__),
            harvest=_as(HarvestConfig, d.get("harvest"), HarvestConfig().__dict__),
            cognition=_as(CognitionConfig, d.get("cognition"), CognitionConfig().__dict__),
            landscape=_as(LandscapeConfig, d.get("landscape"), LandscapeConfig().__dict__),
            demographic=_as(DemographicConfig, d.get("demographic"), DemographicConfig().__dict__),
            probabilities=_as_list(ProbabilityConfig, d.get("probabilities")),
            run=_as(RunConfig, d.get("run"), RunConfig().__dict__),
            agents_path=d.get("agents_path"),
            agents=d.get("agents"),
        )

def load_config(path_or_dict: str | pathlib.Path | Dict[str, Any] | AhdsConfig) -> AhdsConfig:
    """Accept YAML path, dict, or AhdsConfig; always return a fully-typed AhdsConfig.

    Relative `agents_path`, `landscape.data_path` and probability file paths in a
    YAML file are resolved against the file's directory.
    """
    if isinstance(path_or_dict, AhdsConfig):
        # Ensure nested parts are coerced if someone built it with dicts
        return AhdsConfig.from_dict(path_or_dict.__dict__)
    if isinstance(path_or_dict, dict):
        return AhdsConfig.from_dict(path_or_dict)
    path = pathlib.Path(path_or_dict)
    with path.open("r") as f:
        d = yaml.safe_load(f) or {}
    cfg = AhdsConfig.from_dict(d)

    def _rel(p: Optional[str]) -> Optional[str]:
        if p is None or pathlib.Path(p).is_absolute():
            return p
        return str(path.parent / p)

    cfg.agents_path = _rel(cfg.agents_path)
    cfg.landscape.data_path = _rel(cfg.landscape.data_path)
    for pc in cfg.probabilities:
        pc.file_path = _rel(pc.file_path)
    return cfg
