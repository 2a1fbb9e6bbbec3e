
from __future__ import annotations
import random
from typing import Dict, List
from loguru import logger

from ..models.agents import Agent, AgentRole, Vars, with_role
from ..models.probabilities import Probabilities

BIRTH_TABLE = "BirthProbability"
DEATH_TABLE = "DeathProbability"


class ProbabilityTableDemographic:
    """
    Birth/death for household members driven by two probability tables.

    Death probability is looked up by the member's `Age`; a death deactivates
    the agent (it keeps its household share but stops earning). Birth
    probability is looked up by the number of active members of a household;
    a birth adds one member to that household.
    """

    def __init__(self, probabilities: Probabilities, *, birth_table: str = BIRTH_TABLE,
                 death_table: str = DEATH_TABLE, maximum_age: int = 100, seed: int = 42):
        self.birth = probabilities.get(birth_table)
        self.death = probabilities.get(death_table)
        self.maximum_age = maximum_age
        self.rng = random.Random(seed)

    def _new_id(self, template: Agent, taken: set) -> str:
        i = 1
        while f"{template.prototype}{i}" in taken:
            i += 1
        return f"{template.prototype}{i}"

    def run(self, iteration: int, agents: List[Agent]) -> List[Agent]:
        members = [a for a in with_role(agents, AgentRole.HOUSEHOLD_MEMBER) if a.is_active]

        for a in members:
            age = int(a.variables.get(Vars.AGE, 0))
            if age >= self.maximum_age or self.rng.random() < self.death.probability(age):
                a[Vars.IS_ACTIVE] = False
                logger.info("Iteration {}: {} died at age {}", iteration, a.id, age)
            else:
                a[Vars.AGE] = age + 1

        households: Dict[str, List[Agent]] = {}
        for a in members:
            if a.is_active and a.household is not None:
                households.setdefault(a.household, []).append(a)

        taken = {a.id for a in agents}
        born: List[Agent] = []
        for household, alive in households.items():
            if self.rng.random() >= self.birth.probability(len(alive)):
                continue
            template = alive[0]
            child = Agent(
                id=self._new_id(template, taken),
                role=template.role,
                prototype=template.prototype,
                variables={
                    Vars.HOUSEHOLD: template[Vars.HOUSEHOLD],
                    Vars.AGE: 0,
                    Vars.IS_ACTIVE: True,
                    Vars.INCOME: 0.0,
                    Vars.EXPENSES: 0.0,
                    Vars.SAVINGS: 0.0,
                },
                assigned_areas=list(template.assigned_areas),
                goals=list(template.goals),
            )
            if template.has(Vars.HOUSEHOLD_SAVINGS):
                child[Vars.HOUSEHOLD_SAVINGS] = template[Vars.HOUSEHOLD_SAVINGS]
            taken.add(child.id)
            born.append(child)
            logger.info("Iteration {}: {} born into household {}", iteration, child.id, household)
        return born
