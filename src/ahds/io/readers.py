
from __future__ import annotations
import random
from ..core.datatypes import Cohort, HarvestRule, ManagementArea, Prescription, Site, Species, Stand
from ..adapters.landscape import InMemoryLandscape

SPECIES = [
    Species(name="abiebals", maturity=25),
    Species(name="pinubank", maturity=15),
    Species(name="betupapy", maturity=30),
]

def synthesize_landscape(seed: int = 0, n_areas: int = 3, stands_per_area: int = 4,
                         sites_per_stand: int = 5, **params) -> InMemoryLandscape:
    rng = random.Random(seed)
    areas = []
    prescriptions = []
    for i in range(1, n_areas + 1):
        name = f"MM{i}"
        stands = []
        for j in range(stands_per_area):
            sites = []
            for k in range(sites_per_stand):
                cohorts = [
                    Cohort(species=sp.name, age=rng.randint(5, 60), biomass=round(rng.uniform(500, 5000), 1))
                    for sp in rng.sample(SPECIES, rng.randint(1, len(SPECIES)))
                ]
                sites.append(Site(id=f"{name}-{j}-{k}", ecoregion=f"eco{j % 2 + 1}", cohorts=cohorts))
            stands.append(Stand(id=f"{name}-{j}", sites=sites))
        areas.append(ManagementArea(name=name, stands=stands))
        prescriptions.append(Prescription(
            rule=HarvestRule(name=f"{name}-P1", cut_fraction=0.5, min_age=20),
            area=name,
            harvest_area_percent=20.0,
            stands_percent=50.0,
        ))
    return InMemoryLandscape(SPECIES, areas, prescriptions=prescriptions, **params)
