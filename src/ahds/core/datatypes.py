
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class Species(BaseModel):
    name: str
    maturity: int  # age (years) at which a cohort counts as mature

class Cohort(BaseModel):
    species: str
    age: int
    biomass: float  # g/m2

class Site(BaseModel):
    id: str
    ecoregion: str = "default"
    cohorts: List[Cohort] = Field(default_factory=list)
    biomass_removed: float = 0.0  # set by the landscape engine on each run

class Stand(BaseModel):
    id: str
    sites: List[Site] = Field(default_factory=list)

class ManagementArea(BaseModel):
    name: str
    stands: List[Stand] = Field(default_factory=list)

    def sites(self) -> List[Site]:
        return [site for stand in self.stands for site in stand.sites]

class HarvestRule(BaseModel):
    """Cutting rule executed by the landscape engine on the sites a prescription reaches."""
    name: str
    cut_fraction: float = 1.0  # share of each eligible cohort's biomass removed
    min_age: int = 0

    def copy_scaled(self, new_name: str, multiplier: float) -> "HarvestRule":
        cut = min(1.0, max(0.0, self.cut_fraction * multiplier))
        return self.model_copy(update={"name": new_name, "cut_fraction": cut})

class Prescription(BaseModel):
    rule: HarvestRule
    area: str
    harvest_area_percent: float = Field(default=100.0, ge=0.0, le=100.0)
    stands_percent: float = Field(default=100.0, ge=0.0, le=100.0)
    begin_time: int = 0
    end_time: int = 10_000
    generated: bool = False

    @property
    def name(self) -> str:
        return self.rule.name

class Consequent(BaseModel):
    param: str
    value: Any = None
    variable_value: Optional[str] = None  # name of the agent variable holding the value

class Antecedent(BaseModel):
    param: str
    sign: str = ">="
    value: float = 0.0

class DecisionOption(BaseModel):
    id: str
    consequent: Consequent
    origin: Optional[str] = None  # prescription the option realizes
    management_area: Optional[str] = None  # None: usable on every area the agent manages
    antecedents: List[Antecedent] = Field(default_factory=list)

class NewDecisionOption(BaseModel):
    management_area: str
    name: str
    consequent_variable: str
    consequent_value: Any
    based_on: str

class SpeciesBiomassRecord(BaseModel):
    """Average above-ground biomass of one species over the sites of one ecoregion."""
    ecoregion: str
    species: str
    site_count: int = 0
    average_biomass: float = 0.0  # g/m2 per site

class HarvestResults(BaseModel):
    harvested: Dict[str, float] = Field(default_factory=dict)
    biomass: Dict[str, float] = Field(default_factory=dict)
    maturity_percent: Dict[str, float] = Field(default_factory=dict)

    def keys(self) -> List[str]:
        return list(self.biomass.keys())

class HouseholdState(BaseModel):
    household: str
    income: float = 0.0
    expenses: float = 0.0
    savings: float = 0.0

class DecisionOptionHistory(BaseModel):
    matched: List[DecisionOption] = Field(default_factory=list)
    activated: List[DecisionOption] = Field(default_factory=list)

class AgentIterationState(BaseModel):
    histories: Dict[str, DecisionOptionHistory] = Field(default_factory=dict)  # area name -> history
    ranked_goals: List[str] = Field(default_factory=list)

class DecisionOptionUsage(BaseModel):
    iteration: int
    management_area: str
    activated_do: List[str] = Field(default_factory=list)
    activated_do_values: List[str] = Field(default_factory=list)
    matched_do: List[str] = Field(default_factory=list)
    most_important_goal: Optional[str] = None
    total_number_of_do: int = 0
    biomass_harvested: float = 0.0
    manage_area_maturity_percent: float = 0.0
    biomass: float = 0.0
