"""Tests for CLI interface."""

import json
from pathlib import Path

from click.testing import CliRunner

from hexcomposer.cli import cli

SMALL_WORLD = """\
id: islet
features:
  - kind: biome
    id: isle
    biome_type: island
    size: small
    positions:
      - direction: N
        distance_from: 0
        distance_to: 0
        priority: 8
"""


class TestCLI:
    def test_cli_exists(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Hex Composer World Layout Pipeline" in result.output

    def test_compose_writes_output(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("islet.yaml").write_text(SMALL_WORLD)
            result = runner.invoke(
                cli, ["compose", "islet.yaml", "--seed", "3", "--output", "out.json", "--markers"]
            )
            assert result.exit_code == 0, result.output
            assert "Composed islet (seed: 3)" in result.output
            assert "Placed: 1/1" in result.output

            data = json.loads(Path("out.json").read_text())
            assert data["success"] is True
            assert "0:0" in data["cells"]
            assert len(data["markers"]) == 1

    def test_compose_missing_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["compose", "nothing.yaml"])
            assert result.exit_code != 0
            assert "Definition not found" in result.output

    def test_compose_invalid_definition(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("bad.yaml").write_text("features:\n  - kind: flow\n    id: r\n")
            result = runner.invoke(cli, ["compose", "bad.yaml"])
            assert result.exit_code != 0
            assert "Invalid definition" in result.output

    def test_compose_fatal_error(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("loop.yaml").write_text(
                "features:\n"
                "  - kind: biome\n"
                "    id: a\n"
                "    positions:\n"
                "      - anchor: a\n"
            )
            result = runner.invoke(cli, ["compose", "loop.yaml"])
            assert result.exit_code != 0
            assert "not placed before" in result.output

    def test_prepare_bundled_definition(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["prepare", "river_valley"])
        assert result.exit_code == 0, result.output
        assert "Placement order:" in result.output
        lines = result.output.splitlines()
        order = [l.split()[0] for l in lines if l.startswith("  ") and not l.startswith("    ")]
        assert order[:4] == ["peaks", "woods", "bay", "millbrook"]
        assert "silver_river [river]" in result.output
        assert "ford [edge] in woods" in result.output
        assert "peak_wall around peaks sides=N,NE,NW" in result.output

    def test_route(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["route", "0:0", "2:1"])
        assert result.exit_code == 0
        assert result.output.splitlines()[0].startswith("0:0 -> ")
        assert "3 steps" in result.output

    def test_route_bad_cell(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["route", "zero", "2:1"])
        assert result.exit_code != 0
        assert "q:r" in result.output
