
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Union

from ..core.errors import ConfigurationError

Number = Union[int, float]


class VariableType(str, Enum):
    INTEGER = "integer"
    REAL = "real"

    @classmethod
    def parse(cls, name: str) -> "VariableType":
        aliases = {"int": cls.INTEGER, "integer": cls.INTEGER, "double": cls.REAL, "float": cls.REAL, "real": cls.REAL}
        try:
            return aliases[str(name).strip().lower()]
        except KeyError:
            raise ConfigurationError(f"Unsupported probability table variable type '{name}'") from None


def _parse_int(raw: str) -> int:
    return int(float(raw))


VALUE_PARSERS: Dict[VariableType, Callable[[str], Number]] = {
    VariableType.INTEGER: _parse_int,
    VariableType.REAL: float,
}


@dataclass
class ProbabilityTable:
    variable_type: VariableType
    probabilities: Dict[Number, float] = field(default_factory=dict)

    def probability(self, value: Number) -> float:
        """Probability for `value`; 0 when the table has no row for it."""
        return self.probabilities.get(VALUE_PARSERS[self.variable_type](str(value)), 0.0)


class Probabilities:
    def __init__(self):
        self._tables: Dict[str, ProbabilityTable] = {}

    def add(self, variable: str, table: ProbabilityTable) -> None:
        self._tables[variable] = table

    def get(self, variable: str) -> ProbabilityTable:
        if variable not in self._tables:
            raise ConfigurationError(f"No probability table loaded for '{variable}'")
        return self._tables[variable]

    def has(self, variable: str) -> bool:
        return variable in self._tables

    def __len__(self) -> int:
        return len(self._tables)
