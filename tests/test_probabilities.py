"""Tests for probability tables, CSV loading and the demographic process."""
from __future__ import annotations

import pytest

from ahds.adapters.demographic import ProbabilityTableDemographic
from ahds.core.config import ProbabilityConfig
from ahds.core.errors import ConfigurationError
from ahds.io.csv_loader import load_probabilities, load_probability_table
from ahds.models.probabilities import Probabilities, ProbabilityTable, VariableType
from conftest import forest_manager, household_member


def write(path, text: str):
    path.write_text(text, encoding="utf-8")
    return path


class TestVariableType:
    @pytest.mark.parametrize("name,expected", [
        ("int", VariableType.INTEGER), ("Integer", VariableType.INTEGER),
        ("double", VariableType.REAL), ("float", VariableType.REAL), (" real ", VariableType.REAL),
    ])
    def test_aliases(self, name, expected) -> None:
        assert VariableType.parse(name) is expected

    def test_unknown_type(self) -> None:
        with pytest.raises(ConfigurationError):
            VariableType.parse("string")


class TestLoadTable:
    def test_integer_table_with_header(self, tmp_path) -> None:
        p = write(tmp_path / "death.csv", "age,probability\n10,0.1\n20,0.25\n\n")
        table = load_probability_table(p, "integer")
        assert table.variable_type is VariableType.INTEGER
        assert table.probability(20) == 0.25
        assert table.probability("10") == 0.1
        assert table.probability(30) == 0.0

    def test_real_table_without_header(self, tmp_path) -> None:
        p = write(tmp_path / "t.csv", "0.5,0.9\n1.5,0.1\n")
        table = load_probability_table(p, VariableType.REAL, with_header=False)
        assert table.probability(0.5) == 0.9
        assert len(table.probabilities) == 2

    def test_probability_out_of_range(self, tmp_path) -> None:
        p = write(tmp_path / "t.csv", "v,p\n1,1.5\n")
        with pytest.raises(ConfigurationError, match="outside"):
            load_probability_table(p, "int")

    def test_unparsable_value(self, tmp_path) -> None:
        p = write(tmp_path / "t.csv", "v,p\nabc,0.5\n")
        with pytest.raises(ConfigurationError):
            load_probability_table(p, "int")

    def test_short_row(self, tmp_path) -> None:
        p = write(tmp_path / "t.csv", "v,p\n1\n")
        with pytest.raises(ConfigurationError):
            load_probability_table(p, "int")

    def test_load_probabilities_by_variable(self, tmp_path) -> None:
        p = write(tmp_path / "b.csv", "n,p\n1,0.5\n")
        probs = load_probabilities([ProbabilityConfig(variable="BirthProbability", file_path=str(p),
                                                      variable_type="int")])
        assert len(probs) == 1
        assert probs.has("BirthProbability")
        assert probs.get("BirthProbability").probability(1) == 0.5
        with pytest.raises(ConfigurationError):
            probs.get("DeathProbability")


def tables(birth: dict, death: dict) -> Probabilities:
    probs = Probabilities()
    probs.add("BirthProbability", ProbabilityTable(VariableType.INTEGER, birth))
    probs.add("DeathProbability", ProbabilityTable(VariableType.INTEGER, death))
    return probs


class TestDemographic:
    def test_nothing_happens_at_zero_probability(self) -> None:
        members = [household_member("HM1", "H1", income=1.0), household_member("HM2", "H1")]
        for m in members:
            m["Age"] = 30
        born = ProbabilityTableDemographic(tables({}, {})).run(1, members)
        assert born == []
        assert all(m.is_active for m in members)
        assert [m["Age"] for m in members] == [31, 31]

    def test_certain_death_deactivates(self) -> None:
        m = household_member("HM1", "H1")
        m["Age"] = 70
        born = ProbabilityTableDemographic(tables({1: 1.0}, {70: 1.0})).run(1, [m])
        assert m.is_active is False
        # no living members left to give birth
        assert born == []

    def test_maximum_age(self) -> None:
        m = household_member("HM1", "H1")
        m["Age"] = 5
        ProbabilityTableDemographic(tables({}, {}), maximum_age=5).run(1, [m])
        assert not m.is_active

    def test_certain_birth_adds_member(self) -> None:
        a, b = household_member("HM1", "H1"), household_member("HM2", "H1")
        a["HouseholdSavings"] = 12.0
        fm = forest_manager("HM3")
        born = ProbabilityTableDemographic(tables({2: 1.0}, {})).run(4, [a, b, fm])
        assert len(born) == 1
        child = born[0]
        assert child.id == "HM4"
        assert child.household == "H1"
        assert child.is_active
        assert child["Age"] == 0
        assert child["HouseholdSavings"] == 12.0

    def test_inactive_members_ignored(self) -> None:
        dead = household_member("HM1", "H1", active=False)
        dead["Age"] = 3
        born = ProbabilityTableDemographic(tables({0: 1.0, 1: 1.0}, {})).run(1, [dead])
        assert born == []
        assert dead["Age"] == 3

    def test_missing_table(self) -> None:
        probs = Probabilities()
        with pytest.raises(ConfigurationError):
            ProbabilityTableDemographic(probs)
