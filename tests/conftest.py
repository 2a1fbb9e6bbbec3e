"""Shared fixtures: tiny landscapes, agents and registries."""
from __future__ import annotations

import pytest

from ahds.adapters.landscape import InMemoryLandscape
from ahds.core.datatypes import Cohort, HarvestRule, ManagementArea, Prescription, Site, Species, Stand
from ahds.models.agents import Agent, AgentRole
from ahds.models.prescriptions import PrescriptionRegistry
from ahds.models.results import ResultsAggregator
from ahds.models.spatial import SpatialRegistry

SPECIES = [Species(name="pine", maturity=20), Species(name="birch", maturity=30)]


def make_site(site_id: str, *cohorts: tuple[str, int, float], removed: float = 0.0) -> Site:
    return Site(
        id=site_id,
        cohorts=[Cohort(species=s, age=a, biomass=b) for s, a, b in cohorts],
        biomass_removed=removed,
    )


def make_area(name: str, *stands: list[Site]) -> ManagementArea:
    return ManagementArea(
        name=name,
        stands=[Stand(id=f"{name}-S{i}", sites=list(sites)) for i, sites in enumerate(stands)],
    )


def base_prescription(area: str, name: str = "P1", percent: float = 20.0, cut: float = 0.4) -> Prescription:
    return Prescription(
        rule=HarvestRule(name=name, cut_fraction=cut, min_age=0),
        area=area,
        harvest_area_percent=percent,
        stands_percent=50.0,
        begin_time=0,
        end_time=100,
    )


def forest_manager(agent_id: str, *areas: str, **variables) -> Agent:
    return Agent(
        id=agent_id,
        role=AgentRole.FOREST_MANAGER,
        prototype="FM",
        variables={"IsActive": True, **variables},
        assigned_areas=list(areas),
    )


def household_member(agent_id: str, household: str | None, income: float = 0.0, expenses: float = 0.0,
                     active: bool = True) -> Agent:
    variables = {"IsActive": active, "Income": income, "Expenses": expenses}
    if household is not None:
        variables["Household"] = household
    return Agent(id=agent_id, role=AgentRole.HOUSEHOLD_MEMBER, prototype="HM", variables=variables)


@pytest.fixture
def two_areas() -> list[ManagementArea]:
    # A1: site 1 is half mature, site 2 immature -> stand 0.25 -> 25%
    a1 = make_area(
        "A1",
        [
            make_site("A1-1", ("pine", 25, 100.0), ("birch", 10, 100.0), removed=5.0),
            make_site("A1-2", ("pine", 10, 200.0), removed=15.0),
        ],
    )
    # A2: fully mature
    a2 = make_area("A2", [make_site("A2-1", ("pine", 40, 300.0))])
    return [a1, a2]


@pytest.fixture
def landscape(two_areas) -> InMemoryLandscape:
    return InMemoryLandscape(
        SPECIES,
        two_areas,
        prescriptions=[base_prescription("A1"), base_prescription("A2")],
        cell_area=100.0,
        growth_rate=0.0,
    )


@pytest.fixture
def spatial(landscape) -> SpatialRegistry:
    return SpatialRegistry(landscape.management_areas())


@pytest.fixture
def registry(spatial, landscape) -> PrescriptionRegistry:
    reg = PrescriptionRegistry(spatial, landscape)
    for p in landscape.base_prescriptions():
        reg.register(p)
    return reg


@pytest.fixture
def aggregator(landscape) -> ResultsAggregator:
    return ResultsAggregator(landscape.species(), landscape.cell_area)
