
from __future__ import annotations
from typing import Dict, List, Sequence
from loguru import logger

from ..core.datatypes import HouseholdState
from .agents import Agent, AgentRole, Vars, with_role


class HouseholdAggregator:
    """Pooled income, expenses and savings for agents sharing a household."""

    @staticmethod
    def initialize_members(agents: Sequence[Agent]) -> None:
        for a in with_role(list(agents), AgentRole.HOUSEHOLD_MEMBER):
            a[Vars.INCOME] = 0.0
            a[Vars.EXPENSES] = 0.0
            a[Vars.SAVINGS] = 0.0

    @staticmethod
    def reset_inactive(agents: Sequence[Agent]) -> None:
        for a in agents:
            if not a.is_active:
                a[Vars.INCOME] = 0.0
                a[Vars.EXPENSES] = 0.0
                a[Vars.SAVINGS] = 0.0

    @staticmethod
    def aggregate(agents: Sequence[Agent]) -> Dict[str, HouseholdState]:
        groups: Dict[str, List[Agent]] = {}
        for a in with_role(list(agents), AgentRole.HOUSEHOLD_MEMBER):
            if a.household is None:
                logger.debug("{} has no household; skipped", a.id)
                continue
            groups.setdefault(a.household, []).append(a)

        states: Dict[str, HouseholdState] = {}
        for household, members in groups.items():
            income = sum(float(m.variables.get(Vars.INCOME, 0.0)) for m in members)
            expenses = sum(float(m.variables.get(Vars.EXPENSES, 0.0)) for m in members)
            previous = next((float(m[Vars.HOUSEHOLD_SAVINGS]) for m in members if m.has(Vars.HOUSEHOLD_SAVINGS)), 0.0)
            state = HouseholdState(household=household, income=income, expenses=expenses,
                                   savings=previous + (income - expenses))
            for m in members:
                m[Vars.HOUSEHOLD_INCOME] = state.income
                m[Vars.HOUSEHOLD_EXPENSES] = state.expenses
                m[Vars.HOUSEHOLD_SAVINGS] = state.savings
            states[household] = state
        return states
