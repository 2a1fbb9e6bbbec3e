
from __future__ import annotations
from typing import Dict, List, Optional, Sequence
from loguru import logger

from ..core.datatypes import DecisionOption, HarvestResults, ManagementArea, NewDecisionOption
from ..core.errors import MissingHarvestResultError
from ..core.interfaces import IterationState
from .agents import Agent, AgentRole, Vars, with_role
from .keying import HarvestMode, outcome_key
from .spatial import SpatialRegistry


def _lookup(table: Dict[str, float], key: str, agent: Agent) -> float:
    if key not in table:
        raise MissingHarvestResultError(key, agent.id)
    return table[key]


class AgentVariableBinder:
    """Copies harvest results into agent variables and round outputs back out."""

    def __init__(self, mode: HarvestMode | int, spatial: SpatialRegistry):
        self.mode = HarvestMode(mode)
        self.spatial = spatial

    def bind_round_inputs(self, agents: Sequence[Agent], results: HarvestResults, iteration: int) -> None:
        for fm in with_role(list(agents), AgentRole.FOREST_MANAGER):
            areas = self.spatial.areas_of(fm.id)
            if not areas:
                logger.debug("{} manages no area; nothing to bind", fm.id)
                continue
            keys = [outcome_key(self.mode, fm, a) for a in areas]
            harvested = [_lookup(results.harvested, k, fm) for k in keys]
            maturity = [_lookup(results.maturity_percent, k, fm) for k in keys]
            biomass = [_lookup(results.biomass, k, fm) for k in keys]

            fm[Vars.MANAGE_AREA_HARVESTED] = sum(harvested) / len(harvested)
            fm[Vars.MANAGE_AREA_MATURITY_PERCENT] = sum(maturity) / len(maturity)
            fm[Vars.MANAGE_AREA_BIOMASS] = sum(biomass)

            if iteration == 1:
                # no harvest has happened yet in the first round
                fm[Vars.MANAGE_AREA_HARVESTED] = 0.0

    def refresh_area_biomass(self, agent: Agent, area: ManagementArea, results: HarvestResults) -> None:
        if agent.role != AgentRole.FOREST_MANAGER:
            return
        key = outcome_key(self.mode, agent, area)
        agent[Vars.MANAGE_AREA_BIOMASS] = _lookup(results.biomass, key, agent)

    def collect_selections(self, agents: Sequence[Agent], state: IterationState) -> Dict[str, List[str]]:
        selections: Dict[str, List[str]] = {}
        for fm in with_role(list(agents), AgentRole.FOREST_MANAGER):
            agent_state = state.get(fm.id)
            if agent_state is None:
                continue
            for area_name, history in agent_state.histories.items():
                key = outcome_key(self.mode, fm, area_name)
                # several agents activating the same option on one key are kept as-is
                selections.setdefault(key, []).extend(o.id for o in history.activated)
        return selections

    @staticmethod
    def proposal_from_innovation(agent: Agent, area: ManagementArea,
                                 option: Optional[DecisionOption]) -> Optional[NewDecisionOption]:
        if option is None:
            return None
        c = option.consequent
        value = agent[c.variable_value] if c.variable_value else c.value
        return NewDecisionOption(
            management_area=area.name,
            name=option.id,
            consequent_variable=c.param,
            consequent_value=value,
            based_on=option.origin or "",
        )
