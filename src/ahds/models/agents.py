
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from loguru import logger
from pydantic import BaseModel, Field

from ..core.datatypes import DecisionOption
from ..core.errors import ConfigurationError


class AgentRole(str, Enum):
    FOREST_MANAGER = "forest_manager"
    HOUSEHOLD_MEMBER = "household_member"
    OTHER = "other"


class Vars:
    """Agent variable names shared by the binder, the household step and the engines."""
    MANAGE_AREA_HARVESTED = "ManageAreaHarvested"
    MANAGE_AREA_MATURITY_PERCENT = "ManageAreaMaturityPercent"
    MANAGE_AREA_BIOMASS = "ManageAreaBiomass"

    GROUP = "Group"
    HOUSEHOLD = "Household"
    IS_ACTIVE = "IsActive"
    AGE = "Age"

    INCOME = "Income"
    EXPENSES = "Expenses"
    SAVINGS = "Savings"

    HOUSEHOLD_INCOME = "HouseholdIncome"
    HOUSEHOLD_EXPENSES = "HouseholdExpenses"
    HOUSEHOLD_SAVINGS = "HouseholdSavings"


# ---------- configuration ----------
class AgentPrototype(BaseModel):
    name_prefix: str
    role: AgentRole = AgentRole.OTHER
    goals: List[str] = Field(default_factory=list)
    decision_options: List[DecisionOption] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)

class AgentStateSpec(BaseModel):
    prototype: str
    name: Optional[str] = None
    number_of_agents: int = 1
    variables: Dict[str, Any] = Field(default_factory=dict)
    assigned_areas: List[str] = Field(default_factory=list)
    assigned_decision_options: List[str] = Field(default_factory=list)

class AgentConfiguration(BaseModel):
    prototypes: Dict[str, AgentPrototype] = Field(default_factory=dict)
    initial_state: List[AgentStateSpec] = Field(default_factory=list)


# ---------- entity ----------
@dataclass
class Agent:
    id: str
    role: AgentRole
    prototype: str
    variables: Dict[str, Any] = field(default_factory=dict)
    assigned_areas: List[str] = field(default_factory=list)
    decision_options: List[DecisionOption] = field(default_factory=list)
    goals: List[str] = field(default_factory=list)
    connected: List[str] = field(default_factory=list)

    def __getitem__(self, name: str) -> Any:
        return self.variables[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.variables[name] = value

    def has(self, name: str) -> bool:
        return name in self.variables

    @property
    def is_active(self) -> bool:
        return self.variables.get(Vars.IS_ACTIVE) is True

    @property
    def household(self) -> Optional[str]:
        h = self.variables.get(Vars.HOUSEHOLD)
        return None if h is None else str(h)

    def decision_option(self, option_id: str) -> Optional[DecisionOption]:
        return next((o for o in self.decision_options if o.id == option_id), None)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "variables": dict(self.variables),
            "assigned_areas": list(self.assigned_areas),
            "decision_options": [o.id for o in self.decision_options],
        }


def with_role(agents: List[Agent], role: AgentRole) -> List[Agent]:
    return [a for a in agents if a.role == role]


def new_agent(proto_key: str, proto: AgentPrototype, name: str, variables: Dict[str, Any],
              assigned_areas: List[str], option_ids: List[str]) -> Agent:
    options = []
    for oid in option_ids:
        opt = next((o for o in proto.decision_options if o.id == oid), None)
        if opt is None:
            raise ConfigurationError(f"Agent '{name}': decision option '{oid}' is not defined by prototype '{proto_key}'")
        options.append(opt.model_copy(deep=True))
    merged = dict(proto.variables)
    merged.update(variables)
    merged.setdefault(Vars.IS_ACTIVE, True)
    return Agent(
        id=name,
        role=proto.role,
        prototype=proto_key,
        variables=merged,
        assigned_areas=list(assigned_areas),
        decision_options=options,
        goals=list(proto.goals),
    )


def create_agents(conf: AgentConfiguration) -> List[Agent]:
    """Instantiate agents from the initial state, numbering them per prototype (FM1, FM2, ...)."""
    if not conf.prototypes:
        raise ConfigurationError("Agent prototypes were not defined. See configuration file")

    # group states by prototype, keeping first-seen order so numbering is stable
    groups: Dict[str, List[AgentStateSpec]] = {}
    for state in conf.initial_state:
        groups.setdefault(state.prototype, []).append(state)

    agents: List[Agent] = []
    for proto_key, states in groups.items():
        if proto_key not in conf.prototypes:
            raise ConfigurationError(f"Initial state references unknown prototype '{proto_key}'")
        proto = conf.prototypes[proto_key]
        index = 1
        for state in states:
            for _ in range(state.number_of_agents):
                name = state.name
                if not name or state.number_of_agents > 1:
                    name = f"{proto.name_prefix}{index}"
                agents.append(new_agent(proto_key, proto, name, state.variables,
                                        state.assigned_areas, state.assigned_decision_options))
                index += 1

    ids = [a.id for a in agents]
    if len(set(ids)) != len(ids):
        raise ConfigurationError(f"Duplicate agent ids in initial state: {sorted(i for i in set(ids) if ids.count(i) > 1)}")

    connect_groups(agents)
    logger.info("Created {} agents from {} prototypes", len(agents), len(groups))
    return agents


def connect_groups(agents: List[Agent]) -> None:
    by_group: Dict[Any, List[Agent]] = {}
    for a in agents:
        if a.has(Vars.GROUP):
            by_group.setdefault(a[Vars.GROUP], []).append(a)
    for members in by_group.values():
        for a in members:
            a.connected = [b.id for b in members if b is not a]
