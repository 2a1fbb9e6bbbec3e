"""Tests for agent and landscape loading."""
from __future__ import annotations

import pytest
import yaml

from ahds.core.config import load_config
from ahds.core.errors import ConfigurationError
from ahds.io.loaders import agent_configuration, build_landscape, load_agents, load_landscape
from ahds.io.readers import synthesize_landscape

LANDSCAPE = {
    "cell_area": 25,
    "species": [{"name": "pine", "maturity": 20}],
    "areas": [
        {
            "name": "MM1",
            "stands": [{"id": "s0", "sites": [{"id": "c0", "cohorts": [{"species": "pine", "age": 30, "biomass": 80}]}]}],
            "prescriptions": [{"name": "MM1-P1", "cut_fraction": 0.3, "harvest_area_percent": 40, "end_time": 5}],
        },
    ],
}


class TestLandscape:
    def test_yaml_layout(self, tmp_path) -> None:
        path = tmp_path / "land.yaml"
        path.write_text(yaml.safe_dump(LANDSCAPE))
        land = load_landscape(path, growth_rate=0.0)
        assert land.cell_area == 25.0
        assert [a.name for a in land.management_areas()] == ["MM1"]
        (p,) = land.base_prescriptions()
        assert (p.name, p.area, p.rule.cut_fraction, p.harvest_area_percent, p.end_time) == ("MM1-P1", "MM1", 0.3, 40.0, 5)
        assert p.generated is False

    def test_site_ecoregion(self) -> None:
        d = yaml.safe_load(yaml.safe_dump(LANDSCAPE))
        d["areas"][0]["stands"][0]["sites"][0]["ecoregion"] = "eco7"
        (record,) = load_landscape(d).species_biomass()
        assert (record.ecoregion, record.species, record.site_count) == ("eco7", "pine", 1)
        assert record.average_biomass == 80.0

    def test_invalid_layout(self) -> None:
        with pytest.raises(ConfigurationError):
            load_landscape({"areas": [{"stands": []}]})
        with pytest.raises(ConfigurationError):
            load_landscape({"areas": [{"name": "MM1", "prescriptions": [{"cut_fraction": 0.5}]}]})

    def test_build_from_config(self, tmp_path) -> None:
        path = tmp_path / "land.yaml"
        path.write_text(yaml.safe_dump(LANDSCAPE))
        cfg = load_config({"landscape": {"data_path": str(path)}, "horizon": {"start_time": 4, "timestep": 2}})
        land = build_landscape(cfg)
        assert (land.time, land.timestep) == (4, 2)

    def test_synthesized_when_no_data_path(self) -> None:
        land = build_landscape(load_config({}))
        assert [a.name for a in land.management_areas()] == ["MM1", "MM2", "MM3"]
        assert [p.name for p in land.base_prescriptions()] == ["MM1-P1", "MM2-P1", "MM3-P1"]
        assert {r.ecoregion for r in land.species_biomass()} == {"eco1", "eco2"}

    def test_synthesis_is_seeded(self) -> None:
        a = synthesize_landscape(seed=5).management_areas()
        b = synthesize_landscape(seed=5).management_areas()
        assert a == b


class TestAgents:
    def test_from_yaml_file(self, tmp_path) -> None:
        path = tmp_path / "agents.yaml"
        path.write_text(yaml.safe_dump({"prototypes": {"HM": {"name_prefix": "HM"}},
                                        "initial_state": [{"prototype": "HM"}]}))
        conf = load_agents(path)
        assert list(conf.prototypes) == ["HM"]
        cfg = load_config({"agents_path": str(path)})
        assert agent_configuration(cfg).initial_state[0].prototype == "HM"

    def test_inline_agents_win(self) -> None:
        cfg = load_config({"agents": {"prototypes": {"FM": {"name_prefix": "FM"}}}, "agents_path": "missing.yaml"})
        assert list(agent_configuration(cfg).prototypes) == ["FM"]

    def test_no_agent_source(self) -> None:
        with pytest.raises(ConfigurationError):
            agent_configuration(load_config({}))
