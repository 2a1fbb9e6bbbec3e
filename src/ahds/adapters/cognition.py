
from __future__ import annotations
import operator
from typing import Callable, Dict, List
from loguru import logger

from ..core.datatypes import (AgentIterationState, Consequent, DecisionOption, DecisionOptionHistory,
                              ManagementArea)
from ..core.interfaces import CognitiveHooks, IterationState
from ..models.agents import Agent, AgentRole, Vars
from ..models.prescriptions import PERCENT_OF_HARVEST_AREA

_SIGNS: Dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}


class ThresholdRuleEngine:
    """
    Rule-based stand-in for the cognitive engine.

    For each forest manager and each of its areas: match the agent's decision
    options whose antecedents hold and activate the most recently learned
    match. Once the area's maturity reaches the agent's `MaturityTarget`,
    innovate a copy of the activated option that harvests `innovation_step`
    percent more area.
    """

    def __init__(self, innovation_step: float = 5.0, target_variable: str = "MaturityTarget",
                 innovate: bool = True):
        self.innovation_step = innovation_step
        self.target_variable = target_variable
        self.innovate = innovate
        self._counters: Dict[str, int] = {}

    @staticmethod
    def _holds(agent: Agent, option: DecisionOption) -> bool:
        for a in option.antecedents:
            if not agent.has(a.param):
                return False
            if not _SIGNS[a.sign](float(agent[a.param]), a.value):
                return False
        return True

    def _next_name(self, agent: Agent, area: ManagementArea) -> str:
        taken = {o.id for o in agent.decision_options}
        n = self._counters.get(area.name, 0)
        while True:
            n += 1
            name = f"{area.name}_DO{n}"
            if name not in taken:
                self._counters[area.name] = n
                return name

    def _innovation(self, agent: Agent, area: ManagementArea, base: DecisionOption) -> DecisionOption | None:
        if not self.innovate or base.consequent.param != PERCENT_OF_HARVEST_AREA:
            return None
        if not agent.has(self.target_variable) or not agent.has(Vars.MANAGE_AREA_MATURITY_PERCENT):
            return None
        if float(agent[Vars.MANAGE_AREA_MATURITY_PERCENT]) < float(agent[self.target_variable]):
            return None
        c = base.consequent
        current = float(agent[c.variable_value] if c.variable_value else c.value)
        value = min(100.0, current + self.innovation_step)
        if value <= current:
            return None
        return DecisionOption(
            id=self._next_name(agent, area),
            consequent=Consequent(param=c.param, value=value),
            origin=base.origin,
            management_area=area.name,
            antecedents=[a.model_copy() for a in base.antecedents],
        )

    def run_iteration(self, iteration: int, agents: List[Agent], areas: List[ManagementArea],
                      hooks: CognitiveHooks) -> IterationState:
        state: IterationState = {}
        for agent in agents:
            if agent.role != AgentRole.FOREST_MANAGER or not agent.is_active:
                continue
            agent_state = AgentIterationState(ranked_goals=list(agent.goals))
            for area in hooks.filter_areas(agent, areas):
                hooks.before_counterfactual_thinking(agent, area)
                hooks.before_action_selection(agent, area)

                options = [o for o in agent.decision_options if o.management_area in (None, area.name)]
                matched = [o for o in options if self._holds(agent, o)]
                activated = matched[-1:]

                new_option = self._innovation(agent, area, activated[0]) if activated else None
                if new_option is not None:
                    agent.decision_options.append(new_option)
                    activated = [new_option]
                    logger.debug("Iteration {}: {} innovated {} on {}", iteration, agent.id, new_option.id, area.name)
                hooks.after_innovation(agent, area, new_option)

                agent_state.histories[area.name] = DecisionOptionHistory(matched=matched, activated=activated)
            state[agent.id] = agent_state
        return state
