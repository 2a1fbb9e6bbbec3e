
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
from loguru import logger
from .config import AhdsConfig
from .datatypes import DecisionOption, HouseholdState, ManagementArea, NewDecisionOption
from .errors import LandscapeExecutionError
from .interfaces import CognitiveEngine, DemographicProcess, IterationState, LandscapeEngine
from ..models.agents import Agent, AgentConfiguration, AgentRole, create_agents
from ..models.binder import AgentVariableBinder
from ..models.harvest import HarvestModeController
from ..models.household import HouseholdAggregator
from ..models.keying import HarvestMode
from ..models.prescriptions import PrescriptionRegistry
from ..models.results import ResultsAggregator
from ..models.spatial import SpatialRegistry
from ..plugins import builtin  # noqa: F401  (registers the bundled plugins)
from ..plugins.registry import get as get_plugin
from ..io.csv_loader import load_probabilities
from ..io.loaders import agent_configuration
from ..io import output


def log_failure(e: BaseException) -> None:
    logger.error("Exception: {}.{}: {}", type(e).__module__, type(e).__qualname__, e)
    inner = e.__cause__ or e.__context__
    while inner is not None:
        logger.error("Caused by: {}.{}: {}", type(inner).__module__, type(inner).__qualname__, inner)
        inner = inner.__cause__ or inner.__context__


class HarvestDecisionSimulator:
    """
    Outer driver: per external timestep, run the configured number of
    cognitive rounds (bind -> decide -> collect -> households -> report),
    then one harvest cycle (realize -> reconcile -> execute -> measure).

    The simulator is also the hooks object handed to the cognitive engine.
    """

    def __init__(self, cfg: AhdsConfig, landscape: Optional[LandscapeEngine] = None,
                 cognition: Optional[CognitiveEngine] = None, demographic: Optional[DemographicProcess] = None,
                 agents: Optional[AgentConfiguration] = None):
        self.cfg = cfg
        self.mode = HarvestMode(cfg.harvest.mode)
        self.landscape = landscape if landscape is not None else get_plugin(cfg.landscape.name)(cfg)
        self.cognition = cognition if cognition is not None else get_plugin(cfg.cognition.name)(**cfg.cognition.params)
        self.demographic = demographic
        self._agents_conf = agents
        self.agents: List[Agent] = []
        self.iteration = 0
        self.proposals: List[NewDecisionOption] = []
        self.selections: Dict[str, List[str]] = {}
        self.households: Dict[str, HouseholdState] = {}
        self.last_state: IterationState = {}
        self._initialized = False

    # ---------- setup ----------
    def initialize(self) -> None:
        cfg = self.cfg
        logger.info("Initializing harvest decision simulation (mode {})", self.mode.name)
        self.spatial = SpatialRegistry(self.landscape.management_areas())
        self.agents = create_agents(self._agents_conf or agent_configuration(cfg))
        self.spatial.assign_agents(self.agents)

        self.probabilities = load_probabilities(cfg.probabilities)
        if self.demographic is None and cfg.demographic.enabled:
            self.demographic = get_plugin(cfg.demographic.name)(
                self.probabilities, seed=cfg.run.random_seed, **cfg.demographic.params)

        self.registry = PrescriptionRegistry(self.spatial, self.landscape)
        for p in self.landscape.base_prescriptions():
            self.registry.register(p)

        self.aggregator = ResultsAggregator(self.landscape.species(), self.landscape.cell_area,
                                            cfg.harvest.maturity_epsilon)
        self.controller = HarvestModeController(self.mode, self.spatial, self.registry, self.aggregator, self.landscape)
        self.binder = AgentVariableBinder(self.mode, self.spatial)
        self.household_step = HouseholdAggregator()
        self.household_step.initialize_members(self.agents)

        self.controller.measure()
        if cfg.run.write_outputs:
            output.remove_old_outputs(cfg.run.out_dir)
        self._initialized = True
        logger.info("Initialized {} agents on {} management areas", len(self.agents), len(self.spatial.names()))

    # ---------- cognitive hooks ----------
    def filter_areas(self, agent: Agent, areas: Sequence[ManagementArea]) -> List[ManagementArea]:
        return [a for a in areas if agent.id in self.spatial.assigned_agents(a.name)]

    def before_counterfactual_thinking(self, agent: Agent, area: ManagementArea) -> None:
        self.binder.refresh_area_biomass(agent, area, self.controller.results)

    def before_action_selection(self, agent: Agent, area: ManagementArea) -> None:
        self.binder.refresh_area_biomass(agent, area, self.controller.results)

    def after_innovation(self, agent: Agent, area: ManagementArea, option: Optional[DecisionOption]) -> None:
        proposal = self.binder.proposal_from_innovation(agent, area, option)
        if proposal is not None:
            self.proposals.append(proposal)

    # ---------- round ----------
    def run_round(self) -> IterationState:
        self.iteration += 1
        it = self.iteration
        logger.debug("Iteration {}: binding harvest results", it)
        self.binder.bind_round_inputs(self.agents, self.controller.results, it)

        active = [a for a in self.agents if a.is_active]
        state = self.cognition.run_iteration(it, active, self.spatial.areas(), self)
        self.last_state = state
        self.selections = self.binder.collect_selections(self.agents, state)

        if self.demographic is not None:
            born = self.demographic.run(it, self.agents)
            self.agents.extend(born)
            self.spatial.assign_agents(born)

        self.household_step.reset_inactive(self.agents)
        self.households = self.household_step.aggregate(self.agents)
        self.statistics(it, state)
        return state

    def statistics(self, iteration: int, state: IterationState) -> None:
        if not self.cfg.run.write_outputs:
            return
        out_dir = self.cfg.run.out_dir
        output.dump_iteration_state(out_dir, iteration, self.snapshot(state))
        for agent in self.agents:
            if agent.is_active and agent.role == AgentRole.FOREST_MANAGER:
                rows = output.usage_rows(iteration, agent, state, self.controller.results, self.mode)
                output.append_usage_rows(out_dir, agent.id, rows)

    def snapshot(self, state: IterationState) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "agents": [a.snapshot() for a in self.agents],
            "state": {k: v.model_dump() for k, v in state.items()},
            "results": self.controller.results.model_dump(),
            "households": {k: v.model_dump() for k, v in self.households.items()},
            "species_biomass": [r.model_dump() for r in self.controller.species_biomass],
        }

    # ---------- timestep ----------
    def update_species_biomass(self) -> None:
        records = self.landscape.species_biomass()
        logger.info("Species biomass:")
        logger.info("  {:<12}{:<12}{:>8}{:>14}", "Ecoregion", "Species", "Sites", "AvgBiomass")
        for r in records:
            logger.info("  {:<12}{:<12}{:>8}{:>14.1f}", r.ecoregion, r.species, r.site_count, r.average_biomass)
        self.controller.set_species_biomass(records)

    def step(self, t: int) -> None:
        self.update_species_biomass()
        logger.info("Timestep t={}: {} cognitive round(s)", t, self.cfg.cognition.iterations_per_timestep)
        for _ in range(self.cfg.cognition.iterations_per_timestep):
            self.run_round()
        try:
            self.controller.run_cycle(self.proposals, self.selections)
        except LandscapeExecutionError as e:
            log_failure(e)
            raise
        self.proposals = []

    def run(self) -> Dict[str, Any]:
        if not self._initialized:
            self.initialize()
        h = self.cfg.horizon
        logger.info("Starting harvest decision simulation at t={} -> {}", h.start_time, h.end_time)
        timesteps = 0
        for t in range(h.start_time, h.end_time, h.timestep):
            self.step(t)
            timesteps += 1
        logger.success("Simulation complete.")
        return {
            "status": "ok",
            "timesteps": timesteps,
            "iterations": self.iteration,
            "results": self.controller.results.model_dump(),
        }
