
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Set
from loguru import logger

from ..core.datatypes import HarvestResults, ManagementArea, Site, Species
from .keying import HarvestMode
from .spatial import SpatialRegistry

MATURITY_EPSILON = 1e-4


@dataclass
class AreaMeasurement:
    harvested: float
    biomass: float
    maturity_percent: float


class ResultsAggregator:
    """
    Per-area harvest metrics computed from the stand -> site -> cohort tree.

    Site maturity proportion = mature biomass / total biomass (0 below epsilon);
    stand proportion = mean over its sites; area percent = 100 * mean over stands.
    Standing and harvested biomass are summed over sites and converted with
    `/ 100 * cell_area` (g/m2 per cell -> Mg per area).
    """

    def __init__(self, species: Iterable[Species], cell_area: float, epsilon: float = MATURITY_EPSILON):
        self.maturity: Dict[str, int] = {s.name: s.maturity for s in species}
        self.cell_area = float(cell_area)
        self.epsilon = epsilon
        self._unknown_species: Set[str] = set()

    def _site(self, site: Site) -> tuple[float, float]:
        total = 0.0
        mature = 0.0
        for c in site.cohorts:
            total += c.biomass
            age_at_maturity = self.maturity.get(c.species)
            if age_at_maturity is None:
                if c.species not in self._unknown_species:
                    self._unknown_species.add(c.species)
                    logger.warning("Species '{}' has no maturity age; its cohorts never count as mature", c.species)
                continue
            if c.age >= age_at_maturity:
                mature += c.biomass
        proportion = 0.0 if abs(total) < self.epsilon else mature / total
        return total, proportion

    def measure_area(self, area: ManagementArea) -> AreaMeasurement:
        biomass = 0.0
        harvested = 0.0
        area_proportion = 0.0
        for stand in area.stands:
            stand_proportion = 0.0
            for site in stand.sites:
                site_biomass, site_proportion = self._site(site)
                stand_proportion += site_proportion
                biomass += site_biomass
                harvested += site.biomass_removed
            if stand.sites:
                stand_proportion /= len(stand.sites)
            area_proportion += stand_proportion
        if area.stands:
            area_proportion /= len(area.stands)
        return AreaMeasurement(
            harvested=harvested / 100 * self.cell_area,
            biomass=biomass / 100 * self.cell_area,
            maturity_percent=100 * area_proportion,
        )

    def measure(self, mode: HarvestMode | int, spatial: SpatialRegistry) -> HarvestResults:
        results = HarvestResults()
        for area in spatial.areas():
            m = self.measure_area(area)
            for key in spatial.keys_for(mode, area.name):
                results.harvested[key] = m.harvested
                results.biomass[key] = m.biomass
                results.maturity_percent[key] = m.maturity_percent
            logger.debug(
                "Area {}: harvested={:.1f} biomass={:.1f} maturity={:.1f}%",
                area.name, m.harvested, m.biomass, m.maturity_percent,
            )
        return results
