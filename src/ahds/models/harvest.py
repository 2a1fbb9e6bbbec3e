
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence
from loguru import logger

from ..core.datatypes import HarvestResults, NewDecisionOption, SpeciesBiomassRecord
from ..core.errors import AhdsError, LandscapeExecutionError
from .keying import HarvestMode
from .prescriptions import PrescriptionRegistry
from .results import ResultsAggregator
from .spatial import SpatialRegistry


@dataclass
class CycleReport:
    generated: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    applied: Dict[str, List[str]] = field(default_factory=dict)  # area -> generated names applied
    unknown_keys: List[str] = field(default_factory=list)


class HarvestModeController:
    """
    One harvest cycle per external timestep:

      1. realize   - turn proposed decision options into generated prescriptions
      2. reconcile - swap each area's generated prescriptions for the selected ones
      3. execute   - run the landscape engine once for all areas
      4. measure   - recompute HarvestResults for this mode

    Phase 1 and 2 problems are logged and skipped; a phase 3 failure raises
    LandscapeExecutionError and phase 4 does not run.
    """

    def __init__(self, mode: HarvestMode | int, spatial: SpatialRegistry, registry: PrescriptionRegistry,
                 aggregator: ResultsAggregator, landscape):
        self.mode = HarvestMode(mode)
        self.spatial = spatial
        self.registry = registry
        self.aggregator = aggregator
        self.landscape = landscape
        self.results = HarvestResults()
        self.last_report = CycleReport()
        self.species_biomass: List[SpeciesBiomassRecord] = []

    def set_species_biomass(self, records: Sequence[SpeciesBiomassRecord]) -> None:
        self.species_biomass = list(records)

    # ---------- phases ----------
    def realize(self, proposals: Sequence[NewDecisionOption], report: CycleReport) -> None:
        for p in proposals:
            try:
                self.registry.generate(p.name, p.consequent_variable, p.consequent_value, p.based_on, p.management_area)
            except (AhdsError, ValueError, TypeError) as e:
                msg = f"{p.management_area}/{p.name}: {e}"
                logger.warning("Could not realize proposal {}", msg)
                report.warnings.append(msg)
                continue
            report.generated.append(p.name)

        if proposals:
            logger.info("Generated new prescriptions:")
            logger.info("  {:<10}{:<20}{:<20}{:<30}{:>10}", "Area", "Name", "Based on", "Variable", "Value")
            for p in proposals:
                logger.info("  {:<10}{:<20}{:<20}{:<30}{:>10}", p.management_area, p.name, p.based_on,
                            p.consequent_variable, str(p.consequent_value))

    def selections_by_area(self, selections: Mapping[str, Sequence[str]], report: CycleReport) -> Dict[str, List[str]]:
        by_area: Dict[str, List[str]] = {name: [] for name in self.spatial.names()}
        for key, names in selections.items():
            area = self.spatial.area_for_key(self.mode, key)
            if area is None:
                logger.warning("Selection key '{}' does not match any management area; skipped", key)
                report.unknown_keys.append(key)
                continue
            by_area[area].extend(names)
        return by_area

    def reconcile(self, selections: Mapping[str, Sequence[str]], report: CycleReport) -> None:
        logger.info("Selected prescriptions:")
        logger.info("  {:<10}{}", "Area", "Prescriptions")
        for area, names in self.selections_by_area(selections, report).items():
            report.applied[area] = self.registry.reconcile(area, names)
            logger.info("  {:<10}{}", area, " ".join(names) if names else "none")

    def execute(self) -> None:
        try:
            self.landscape.run()
        except Exception as e:
            raise LandscapeExecutionError(f"Landscape engine failed while executing prescriptions: {e}") from e

    def measure(self) -> HarvestResults:
        self.results = self.aggregator.measure(self.mode, self.spatial)
        return self.results

    # ---------- full cycle ----------
    def run_cycle(self, proposals: Sequence[NewDecisionOption], selections: Mapping[str, Sequence[str]]) -> HarvestResults:
        report = CycleReport()
        self.last_report = report
        self.realize(proposals, report)
        self.reconcile(selections, report)
        self.execute()
        return self.measure()
