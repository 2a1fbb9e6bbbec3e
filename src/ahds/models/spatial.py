
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Set
from loguru import logger

from ..core.datatypes import ManagementArea
from ..core.errors import UnknownAreaError
from .keying import HarvestMode, outcome_key


class SpatialRegistry:
    """Management areas by name, and which agents may act on each."""

    def __init__(self, areas: Iterable[ManagementArea] = ()):
        self._areas: Dict[str, ManagementArea] = {}
        self._assigned: Dict[str, List[str]] = {}
        for a in areas:
            self.add_area(a)

    def add_area(self, area: ManagementArea) -> None:
        if area.name in self._areas:
            raise ValueError(f"Duplicate management area name '{area.name}'")
        self._areas[area.name] = area
        self._assigned[area.name] = []

    def has(self, name: str) -> bool:
        return name in self._areas

    def area(self, name: str) -> ManagementArea:
        if name not in self._areas:
            raise UnknownAreaError(name)
        return self._areas[name]

    def names(self) -> List[str]:
        return list(self._areas.keys())

    def areas(self) -> List[ManagementArea]:
        return list(self._areas.values())

    # ---------- assignments ----------
    def assign(self, agent_id: str, area_name: str) -> None:
        if area_name not in self._areas:
            raise UnknownAreaError(area_name)
        if agent_id not in self._assigned[area_name]:
            self._assigned[area_name].append(agent_id)

    def assign_agents(self, agents: Iterable) -> None:
        for agent in agents:
            for area_name in agent.assigned_areas:
                self.assign(agent.id, area_name)

    def assigned_agents(self, area_name: str) -> List[str]:
        if area_name not in self._areas:
            raise UnknownAreaError(area_name)
        return list(self._assigned[area_name])

    def areas_of(self, agent_id: str) -> List[ManagementArea]:
        return [self._areas[n] for n, ids in self._assigned.items() if agent_id in ids]

    # ---------- keys ----------
    def keys_for(self, mode: HarvestMode | int, area_name: str) -> List[str]:
        mode = HarvestMode(mode)
        if mode is HarvestMode.PER_AREA:
            return [outcome_key(mode, area_name, area_name)]
        return [outcome_key(mode, agent_id, area_name) for agent_id in self.assigned_agents(area_name)]

    def area_for_key(self, mode: HarvestMode | int, key: str) -> Optional[str]:
        for name in self._areas:
            if key in self.keys_for(mode, name):
                return name
        logger.debug("Key '{}' maps to no management area", key)
        return None

    def all_keys(self, mode: HarvestMode | int) -> Set[str]:
        return {k for name in self._areas for k in self.keys_for(mode, name)}
