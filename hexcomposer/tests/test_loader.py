"""Tests for definition loading and settings."""
import json
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from hexcomposer import config
from hexcomposer.config import ComposerSettings, load_settings
from hexcomposer.loader import DefinitionLoader
from hexcomposer.schemas import Biome, Flow, Structure

YAML_DEFINITION = """\
id: hamlet
features:
  - kind: structure
    id: hamlet
    structure_type: village
  - kind: biome
    id: fields
    biome_type: plains
    positions:
      - direction: NORTH
        distance: small
        anchor: hamlet
        priority: 3
"""


class TestDefinitionLoader:
    def test_load_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "hamlet.yaml"
            path.write_text(YAML_DEFINITION)
            definition = DefinitionLoader(Path(tmpdir)).load(path)

        assert definition.id == "hamlet"
        assert isinstance(definition.features[0], Structure)
        assert definition.features[1].positions[0].anchor == "hamlet"

    def test_load_json(self, tmp_path):
        data = {"id": "dunes", "features": [{"kind": "biome", "id": "sand", "biome_type": "desert"}]}
        (tmp_path / "dunes.json").write_text(json.dumps(data))
        definition = DefinitionLoader(tmp_path).load("dunes")
        assert definition.features[0].biome_type.value == "desert"

    def test_load_by_name(self, tmp_path):
        (tmp_path / "hamlet.yml").write_text(YAML_DEFINITION)
        assert DefinitionLoader(tmp_path).load("hamlet").id == "hamlet"

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DefinitionLoader(tmp_path).load("missing")

    def test_invalid(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("features:\n  - kind: biome\n")
        with pytest.raises(ValidationError):
            DefinitionLoader(tmp_path).load("bad")

    def test_load_all_skips_invalid(self, tmp_path):
        (tmp_path / "hamlet.yaml").write_text(YAML_DEFINITION)
        (tmp_path / "bad.yaml").write_text("features:\n  - kind: biome\n")
        (tmp_path / "notes.txt").write_text("not a definition")
        definitions = DefinitionLoader(tmp_path).load_all()
        assert list(definitions) == ["hamlet"]

    def test_bundled_definition(self):
        definition = DefinitionLoader().load("river_valley")
        assert definition.id == "river_valley"
        assert len(definition.areas) == 4
        assert all(isinstance(f, Flow) for f in definition.flows)
        assert any(isinstance(f, Biome) and f.continent == "mainland" for f in definition.areas)
        assert [p.host for p in definition.points] == ["woods"]
        assert definition.side_walls[0].target == "peaks"
        assert "ford" in definition.flows[-1].waypoints


class TestSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings.max_retries == config.DEFAULT_MAX_RETRIES == 30
        assert settings.mandatory_priority == 5
        assert settings.max_route_length == 100
        assert settings.land_radius is None

    def test_load_toml(self, tmp_path):
        path = tmp_path / "composer.toml"
        path.write_text("[composer]\nmax_retries = 12\nregion_margin = 4\n")
        settings = load_settings(path)
        assert settings.max_retries == 12
        assert settings.region_margin == 4
        assert settings.ocean_ring == config.OCEAN_RING

    def test_missing_table_keeps_defaults(self, tmp_path):
        path = tmp_path / "composer.toml"
        path.write_text("[other]\nvalue = 1\n")
        assert load_settings(path) == ComposerSettings()

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "composer.toml"
        path.write_text("[composer]\nmax_retries = 0\n")
        with pytest.raises(ValidationError):
            load_settings(path)
