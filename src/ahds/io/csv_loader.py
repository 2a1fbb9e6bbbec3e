# ahds/src/ahds/io/csv_loader.py
from __future__ import annotations
import csv
from pathlib import Path
from typing import Iterable
from loguru import logger
from ..core.config import ProbabilityConfig
from ..core.errors import ConfigurationError
from ..models.probabilities import VALUE_PARSERS, Probabilities, ProbabilityTable, VariableType

def _read_rows(path: Path, with_header: bool) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as f:
        rows = [r for r in csv.reader(f) if r and any(c.strip() for c in r)]
    return rows[1:] if with_header else rows

def load_probability_table(path: str | Path, variable_type: VariableType | str, with_header: bool = True) -> ProbabilityTable:
    """Read `value,probability` rows into a ProbabilityTable."""
    vt = variable_type if isinstance(variable_type, VariableType) else VariableType.parse(variable_type)
    parse = VALUE_PARSERS[vt]
    table = ProbabilityTable(variable_type=vt)
    p = Path(path)
    for i, row in enumerate(_read_rows(p, with_header), start=1):
        if len(row) < 2:
            raise ConfigurationError(f"{p}: row {i} needs 'value,probability', got {row!r}")
        try:
            value = parse(row[0].strip())
            prob = float(row[1])
        except ValueError as e:
            raise ConfigurationError(f"{p}: row {i}: {e}") from e
        if not 0.0 <= prob <= 1.0:
            raise ConfigurationError(f"{p}: row {i}: probability {prob} outside [0, 1]")
        table.probabilities[value] = prob
    return table

def load_probabilities(configs: Iterable[ProbabilityConfig]) -> Probabilities:
    probabilities = Probabilities()
    for pc in configs:
        table = load_probability_table(pc.file_path, pc.variable_type, pc.with_header)
        probabilities.add(pc.variable, table)
        logger.info("Loaded probability table {} ({} rows, {}) from {}",
                    pc.variable, len(table.probabilities), table.variable_type.value, pc.file_path)
    return probabilities
