
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List
from loguru import logger

from ..core.datatypes import ManagementArea, Prescription, Species, SpeciesBiomassRecord, Stand


@dataclass
class _Pending:
    prescription: Prescription
    harvest_area_percent: float
    stands_percent: float
    start_time: int
    end_time: int


class InMemoryLandscape:
    """
    Small deterministic landscape used for runs without an external forest model.

    Each `run()` executes the prescriptions active at the current time, then
    ages every cohort by `timestep` and grows its biomass by `growth_rate`
    per year. Stands are cut most-mature first.
    """

    def __init__(self, species: Iterable[Species], areas: Iterable[ManagementArea], *,
                 prescriptions: Iterable[Prescription] = (), cell_area: float = 100.0,
                 start_time: int = 0, timestep: int = 1, growth_rate: float = 0.02,
                 fail_on_run: bool = False):
        self._species: Dict[str, Species] = {s.name: s for s in species}
        self._areas: Dict[str, ManagementArea] = {a.name: a for a in areas}
        self._base = list(prescriptions)
        self._pending: Dict[str, List[_Pending]] = {name: [] for name in self._areas}
        self.cell_area = float(cell_area)
        self.time = start_time
        self.timestep = timestep
        self.growth_rate = growth_rate
        self.fail_on_run = fail_on_run

    # ---------- data source ----------
    def species(self) -> List[Species]:
        return list(self._species.values())

    def management_areas(self) -> List[ManagementArea]:
        return list(self._areas.values())

    def base_prescriptions(self) -> List[Prescription]:
        return list(self._base)

    def species_biomass(self) -> List[SpeciesBiomassRecord]:
        """Average biomass per species per ecoregion, over every site of the landscape."""
        totals: Dict[str, Dict[str, float]] = {}
        site_counts: Dict[str, int] = {}
        for area in self._areas.values():
            for site in area.sites():
                per_species = totals.setdefault(site.ecoregion, {name: 0.0 for name in self._species})
                site_counts[site.ecoregion] = site_counts.get(site.ecoregion, 0) + 1
                for c in site.cohorts:
                    if c.species in per_species:
                        per_species[c.species] += c.biomass
        return [
            SpeciesBiomassRecord(
                ecoregion=eco,
                species=name,
                site_count=site_counts[eco],
                average_biomass=total / site_counts[eco],
            )
            for eco, per_species in totals.items()
            for name, total in per_species.items()
        ]

    def pending(self, area: str) -> List[str]:
        return [p.prescription.name for p in self._pending[area]]

    # ---------- prescription sink ----------
    def apply_prescription(self, area: str, prescription: Prescription, harvest_area_percent: float,
                           stands_percent: float, start_time: int, end_time: int) -> None:
        if area not in self._areas:
            raise KeyError(area)
        self._pending[area].append(_Pending(prescription, harvest_area_percent, stands_percent, start_time, end_time))

    def withdraw_prescription(self, area: str, prescription: Prescription) -> None:
        # identity, not name: names can repeat within an area
        self._pending[area] = [p for p in self._pending[area] if p.prescription is not prescription]

    def finish_initialization(self, area: str) -> None:
        self._pending[area].sort(key=lambda p: p.start_time)

    # ---------- execution ----------
    def _mature_biomass(self, stand: Stand) -> float:
        total = 0.0
        for site in stand.sites:
            for c in site.cohorts:
                sp = self._species.get(c.species)
                if sp is not None and c.age >= sp.maturity:
                    total += c.biomass
        return total

    def _harvest(self, area: ManagementArea, p: _Pending) -> float:
        stands = sorted(area.stands, key=lambda s: (-self._mature_biomass(s), s.id))
        stands = stands[:math.ceil(len(stands) * p.stands_percent / 100)]
        n_sites = sum(len(s.sites) for s in area.stands)
        target = round(n_sites * p.harvest_area_percent / 100)
        rule = p.prescription.rule

        removed = 0.0
        cut = 0
        for stand in stands:
            for site in stand.sites:
                if cut >= target:
                    return removed
                for c in site.cohorts:
                    if c.age >= rule.min_age:
                        take = c.biomass * rule.cut_fraction
                        c.biomass -= take
                        site.biomass_removed += take
                        removed += take
                site.cohorts = [c for c in site.cohorts if c.biomass > 0]
                cut += 1
        return removed

    def _grow(self) -> None:
        factor = (1.0 + self.growth_rate) ** self.timestep
        for area in self._areas.values():
            for site in area.sites():
                for c in site.cohorts:
                    c.age += self.timestep
                    c.biomass *= factor

    def run(self) -> None:
        if self.fail_on_run:
            raise RuntimeError(f"landscape run failed at t={self.time}")
        for area in self._areas.values():
            for site in area.sites():
                site.biomass_removed = 0.0
        for name, area in self._areas.items():
            for p in self._pending[name]:
                if p.start_time <= self.time <= p.end_time:
                    removed = self._harvest(area, p)
                    logger.debug("t={} {}: {} removed {:.1f} g/m2", self.time, name, p.prescription.name, removed)
        self._grow()
        self.time += self.timestep
