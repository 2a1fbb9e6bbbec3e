
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
from loguru import logger

from ..core.datatypes import Prescription
from ..core.errors import ConfigurationError, PrescriptionNotFoundError, UnsupportedParameterError, UnknownAreaError
from .spatial import SpatialRegistry

PERCENT_OF_HARVEST_AREA = "PercentOfHarvestArea"


class PrescriptionRegistry:
    """
    Base and generated prescriptions per management area.

    `_known` holds every prescription ever registered or generated (the pool
    selections are resolved against); `_applied` holds, per area, what is
    currently handed to the landscape engine. Generated prescriptions carry
    `generated=True` and are replaced wholesale on every `reconcile`.
    """

    def __init__(self, spatial: SpatialRegistry, landscape):
        self.spatial = spatial
        self.landscape = landscape
        self._known: List[Prescription] = []
        self._applied: Dict[str, List[Prescription]] = {name: [] for name in spatial.names()}

    def _check_area(self, area: str) -> None:
        if not self.spatial.has(area):
            raise UnknownAreaError(area)
        self._applied.setdefault(area, [])

    # ---------- queries ----------
    def applied(self, area: str) -> List[Prescription]:
        self._check_area(area)
        return list(self._applied[area])

    def applied_names(self, area: str) -> List[str]:
        return [p.name for p in self.applied(area)]

    def base(self, area: str) -> List[Prescription]:
        return [p for p in self._known if p.area == area and not p.generated]

    def generated(self, area: str) -> List[Prescription]:
        return [p for p in self._known if p.area == area and p.generated]

    def find(self, area: str, name: str) -> Optional[Prescription]:
        # match on area identity and name; names repeat across areas
        return next((p for p in self._known if p.area == area and p.name == name), None)

    # ---------- operations ----------
    def register(self, prescription: Prescription) -> None:
        """Add a base prescription at initialization and apply it to its area."""
        self._check_area(prescription.area)
        p = prescription.model_copy(update={"generated": False})
        self._known.append(p)
        self.apply(p.area, p)
        logger.debug("Registered base prescription {} on area {}", p.name, p.area)

    def generate(self, name: str, parameter: str, value: Any, based_on: str, area: str) -> Prescription:
        self._check_area(area)
        if any(p.name == name for p in self.base(area)):
            raise ConfigurationError(f"'{name}' already names a base prescription on area '{area}'")
        source = next((p for p in self._applied[area] if p.name == based_on), None)
        if source is None:
            raise PrescriptionNotFoundError(area, based_on)

        if parameter != PERCENT_OF_HARVEST_AREA:
            raise UnsupportedParameterError(parameter)

        new_percent = float(value)
        old_percent = source.harvest_area_percent
        multiplier = new_percent / old_percent if old_percent > 0 else 1.0
        scaled = source.rule.cut_fraction * multiplier
        if not 0.0 <= scaled <= 1.0:
            logger.debug("{} on {}: cut fraction {:.3f} clamped to [0, 1]", name, area, scaled)

        generated = Prescription(
            rule=source.rule.copy_scaled(name, multiplier),
            area=area,
            harvest_area_percent=new_percent,
            stands_percent=source.stands_percent,
            begin_time=source.begin_time,
            end_time=source.end_time,
            generated=True,
        )
        self._known = [p for p in self._known if not (p.generated and p.area == area and p.name == name)]
        self._known.append(generated)
        logger.debug("Generated {} on {} from {} (x{:.3f})", name, area, based_on, multiplier)
        return generated

    def apply(self, area: str, prescription: Prescription) -> None:
        self._check_area(area)
        self.landscape.apply_prescription(
            area,
            prescription,
            prescription.harvest_area_percent,
            prescription.stands_percent,
            prescription.begin_time,
            prescription.end_time,
        )
        self.landscape.finish_initialization(area)
        self._applied[area].append(prescription)

    def reconcile(self, area: str, selected_names: Sequence[str]) -> List[str]:
        """Withdraw all generated prescriptions from `area`, then apply the selected ones.

        Returns the names applied. Names with no generated prescription on this
        area are skipped.
        """
        self._check_area(area)
        for p in self._applied[area]:
            if p.generated:
                self.landscape.withdraw_prescription(area, p)
        self._applied[area] = [p for p in self._applied[area] if not p.generated]

        applied: List[str] = []
        for name in selected_names:
            if name in applied:
                logger.debug("{} selected more than once on {}; applied once", name, area)
                continue
            match = next((p for p in self._known if p.generated and p.area == area and p.name == name), None)
            if match is None:
                logger.debug("No generated prescription {} on {}; skipped", name, area)
                continue
            self.apply(area, match)
            applied.append(name)
        return applied
