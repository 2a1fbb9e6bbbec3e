
from __future__ import annotations
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Sequence

from .datatypes import AgentIterationState, DecisionOption, ManagementArea, Prescription, Species, SpeciesBiomassRecord

if TYPE_CHECKING:
    from ..models.agents import Agent

# agent id -> that agent's histories for the round
IterationState = Dict[str, AgentIterationState]


class LandscapeEngine(Protocol):
    """Forest simulation the loop reads from and sends prescriptions to."""

    cell_area: float

    def species(self) -> List[Species]: ...

    def management_areas(self) -> List[ManagementArea]: ...

    def base_prescriptions(self) -> List[Prescription]: ...

    def species_biomass(self) -> List[SpeciesBiomassRecord]: ...

    def apply_prescription(self, area: str, prescription: Prescription, harvest_area_percent: float,
                           stands_percent: float, start_time: int, end_time: int) -> None: ...

    def withdraw_prescription(self, area: str, prescription: Prescription) -> None: ...

    def finish_initialization(self, area: str) -> None: ...

    def run(self) -> None:
        """Execute every pending prescription across all areas. Blocking; raises on failure."""
        ...


class CognitiveHooks(Protocol):
    def filter_areas(self, agent: "Agent", areas: Sequence[ManagementArea]) -> List[ManagementArea]: ...

    def before_counterfactual_thinking(self, agent: "Agent", area: ManagementArea) -> None: ...

    def before_action_selection(self, agent: "Agent", area: ManagementArea) -> None: ...

    def after_innovation(self, agent: "Agent", area: ManagementArea, option: Optional[DecisionOption]) -> None: ...


class CognitiveEngine(Protocol):
    def run_iteration(self, iteration: int, agents: List["Agent"], areas: List[ManagementArea],
                      hooks: CognitiveHooks) -> IterationState: ...


class DemographicProcess(Protocol):
    def run(self, iteration: int, agents: List["Agent"]) -> List["Agent"]:
        """Apply deaths in place and return newborn agents."""
        ...
