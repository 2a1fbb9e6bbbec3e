"""Tests for the threshold-rule cognitive engine."""
from __future__ import annotations

from typing import List, Optional

import pytest

from ahds.adapters.cognition import ThresholdRuleEngine
from ahds.core.datatypes import Antecedent, Consequent, DecisionOption, ManagementArea
from conftest import forest_manager, household_member, make_area


class RecordingHooks:
    def __init__(self, only: Optional[str] = None):
        self.only = only
        self.calls: List[tuple] = []

    def filter_areas(self, agent, areas):
        return [a for a in areas if a.name in agent.assigned_areas and (self.only is None or a.name == self.only)]

    def before_counterfactual_thinking(self, agent, area: ManagementArea) -> None:
        self.calls.append(("counterfactual", agent.id, area.name))

    def before_action_selection(self, agent, area: ManagementArea) -> None:
        self.calls.append(("selection", agent.id, area.name))

    def after_innovation(self, agent, area: ManagementArea, option) -> None:
        self.calls.append(("innovation", agent.id, area.name, option.id if option else None))


def option(option_id: str, value: float = 20.0, area: Optional[str] = None, when: Optional[tuple] = None) -> DecisionOption:
    antecedents = [Antecedent(param=when[0], sign=when[1], value=when[2])] if when else []
    return DecisionOption(id=option_id, origin="P1", management_area=area, antecedents=antecedents,
                          consequent=Consequent(param="PercentOfHarvestArea", value=value))


@pytest.fixture
def areas() -> List[ManagementArea]:
    return [make_area("MM1"), make_area("MM2")]


class TestMatching:
    def test_latest_matched_option_is_activated(self, areas) -> None:
        fm = forest_manager("FM1", "MM1", ManageAreaBiomass=10.0)
        fm.decision_options = [option("DO1"), option("DO2", when=("ManageAreaBiomass", ">", 5.0))]
        state = ThresholdRuleEngine(innovate=False).run_iteration(1, [fm], areas, RecordingHooks())
        history = state["FM1"].histories["MM1"]
        assert [o.id for o in history.matched] == ["DO1", "DO2"]
        assert [o.id for o in history.activated] == ["DO2"]

    def test_failed_or_missing_antecedent(self, areas) -> None:
        fm = forest_manager("FM1", "MM1", ManageAreaBiomass=1.0)
        fm.decision_options = [option("DO1", when=("ManageAreaBiomass", ">=", 5.0)),
                               option("DO2", when=("Unknown", ">=", 0.0))]
        history = ThresholdRuleEngine().run_iteration(1, [fm], areas, RecordingHooks()).get("FM1").histories["MM1"]
        assert history.matched == [] and history.activated == []

    def test_options_scoped_to_area(self, areas) -> None:
        fm = forest_manager("FM1", "MM1", "MM2")
        fm.decision_options = [option("DO1", area="MM1"), option("DO2", area="MM2")]
        state = ThresholdRuleEngine(innovate=False).run_iteration(1, [fm], areas, RecordingHooks())
        assert [o.id for o in state["FM1"].histories["MM1"].activated] == ["DO1"]
        assert [o.id for o in state["FM1"].histories["MM2"].activated] == ["DO2"]

    def test_only_active_forest_managers(self, areas) -> None:
        retired = forest_manager("FM2", "MM1", IsActive=False)
        hm = household_member("HM1", "H1")
        state = ThresholdRuleEngine().run_iteration(1, [retired, hm], areas, RecordingHooks())
        assert state == {}


class TestHooks:
    def test_hook_order_and_filtering(self, areas) -> None:
        fm = forest_manager("FM1", "MM1", "MM2")
        fm.decision_options = [option("DO1")]
        hooks = RecordingHooks(only="MM2")
        state = ThresholdRuleEngine(innovate=False).run_iteration(1, [fm], areas, hooks)
        assert list(state["FM1"].histories) == ["MM2"]
        assert hooks.calls == [
            ("counterfactual", "FM1", "MM2"),
            ("selection", "FM1", "MM2"),
            ("innovation", "FM1", "MM2", None),
        ]


class TestInnovation:
    def test_innovates_when_maturity_reaches_target(self, areas) -> None:
        fm = forest_manager("FM1", "MM1", ManageAreaMaturityPercent=50.0, MaturityTarget=40.0)
        fm.decision_options = [option("DO1", value=20.0)]
        hooks = RecordingHooks()
        state = ThresholdRuleEngine(innovation_step=5.0).run_iteration(1, [fm], areas, hooks)
        activated = state["FM1"].histories["MM1"].activated
        assert [o.id for o in activated] == ["MM1_DO1"]
        new = activated[0]
        assert new.consequent.value == 25.0
        assert new.origin == "P1"
        assert new.management_area == "MM1"
        assert fm.decision_option("MM1_DO1") is new
        assert hooks.calls[-1] == ("innovation", "FM1", "MM1", "MM1_DO1")

    def test_next_round_builds_on_innovation(self, areas) -> None:
        fm = forest_manager("FM1", "MM1", ManageAreaMaturityPercent=50.0, MaturityTarget=40.0)
        fm.decision_options = [option("DO1", value=20.0)]
        engine = ThresholdRuleEngine(innovation_step=5.0)
        engine.run_iteration(1, [fm], areas, RecordingHooks())
        state = engine.run_iteration(2, [fm], areas, RecordingHooks())
        new = state["FM1"].histories["MM1"].activated[0]
        assert new.id == "MM1_DO2"
        assert new.consequent.value == 30.0

    def test_no_innovation_below_target_or_at_cap(self, areas) -> None:
        below = forest_manager("FM1", "MM1", ManageAreaMaturityPercent=10.0, MaturityTarget=40.0)
        below.decision_options = [option("DO1")]
        capped = forest_manager("FM2", "MM1", ManageAreaMaturityPercent=90.0, MaturityTarget=40.0)
        capped.decision_options = [option("DO1", value=100.0)]
        state = ThresholdRuleEngine().run_iteration(1, [below, capped], areas, RecordingHooks())
        assert [o.id for o in state["FM1"].histories["MM1"].activated] == ["DO1"]
        assert [o.id for o in state["FM2"].histories["MM1"].activated] == ["DO1"]
        assert len(capped.decision_options) == 1
