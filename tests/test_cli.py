"""
Tests for the mapfit command-line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from mapfit import __version__
from mapfit.cli.config import get_config_path, load_user_config, parse_value
from mapfit.cli.main import app
from mapfit.exporters.npz import save_raster
from mapfit.utils.synthetic import crop_live_map, make_reference_map

runner = CliRunner()


@pytest.fixture(autouse=True)
def user_config(tmp_path, monkeypatch):
    """Point the user configuration at a temporary file."""
    path = tmp_path / "mapfit_config.json"
    monkeypatch.setenv("MAPFIT_CONFIG", str(path))
    return path


@pytest.fixture
def map_files(tmp_path):
    """Reference and live maps saved as .npz (live cut out at index (30, 25), 90 degrees)."""
    reference = make_reference_map((60, 60), resolution=0.1, seed=3)
    live = crop_live_map(reference, (30, 25), size=(20, 20), rotation=90.0, z_shift=0.25)
    reference_path = save_raster(reference, tmp_path / "reference.npz")
    live_path = save_raster(live, tmp_path / "live.npz")
    return live_path, reference_path, live


class TestUserConfig:
    """Tests for the user configuration helpers."""

    def test_config_path_override(self, user_config):
        assert get_config_path() == user_config

    def test_missing_file_gives_defaults(self):
        assert load_user_config().angle_increment == 360.0

    def test_invalid_file_gives_defaults(self, user_config):
        user_config.write_text("{broken")
        assert load_user_config().position_search_stride == 5

    @pytest.mark.parametrize(
        "text,expected",
        [("true", True), ("False", False), ("3", 3), ("0.5", 0.5), ("ncc,ssd", ["ncc", "ssd"]), ("odom", "odom")],
    )
    def test_parse_value(self, text, expected):
        assert parse_value(text) == expected


class TestConfigCommands:
    """Tests for the config sub-commands."""

    def test_set_and_show(self, user_config):
        result = runner.invoke(app, ["config", "set", "angle_increment", "45"])
        assert result.exit_code == 0
        assert json.loads(user_config.read_text())["angle_increment"] == 45

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "angle_increment" in result.stdout

    def test_set_alias(self, user_config):
        result = runner.invoke(app, ["config", "set", "position_increment_search", "3"])
        assert result.exit_code == 0
        assert load_user_config().position_search_stride == 3

    def test_set_invalid(self, user_config):
        result = runner.invoke(app, ["config", "set", "angle_increment", "0"])
        assert result.exit_code == 1
        assert not user_config.exists()

    def test_reset(self, user_config):
        runner.invoke(app, ["config", "set", "weighted", "true"])
        result = runner.invoke(app, ["config", "reset"])
        assert result.exit_code == 0
        assert load_user_config().weighted is False


class TestCommands:
    """Tests for the search, info, demo and version commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_info(self, map_files):
        live_path, _, _ = map_files
        result = runner.invoke(app, ["info", live_path])
        assert result.exit_code == 0
        assert "elevation" in result.stdout
        assert "variance" in result.stdout

    def test_info_invalid_file(self, tmp_path):
        path = tmp_path / "notes.npz"
        path.write_bytes(b"not an archive")
        result = runner.invoke(app, ["info", str(path)])
        assert result.exit_code == 1
        assert "Failed to read raster map" in result.stdout

    def test_search(self, map_files, tmp_path):
        live_path, reference_path, live = map_files
        output = tmp_path / "result.json"
        result = runner.invoke(app, [
            "search", live_path, reference_path,
            "--angle-increment", "90",
            "--correlation-stride", "2",
            "--true-x", str(live.position[0]),
            "--true-y", str(live.position[1]),
            "--true-rotation", "90",
            "-o", str(output),
        ])
        assert result.exit_code == 0, result.stdout

        payload = json.loads(output.read_text())
        assert payload["poses"]["ncc"]["index"] == [30, 25]
        assert payload["poses"]["ncc"]["rotation"] == 90.0
        assert payload["z_offset"] == pytest.approx(-0.25)
        assert payload["config"]["angle_increment"] == 90.0
        assert payload["evaluation"]["summary"]["ncc"]["correct_matches"] == 1

    def test_search_with_config_file(self, map_files, tmp_path):
        live_path, reference_path, _ = map_files
        config_path = tmp_path / "search.json"
        config_path.write_text(json.dumps({"angleIncrementDegrees": 90, "correlationStride": 2,
                                           "active_metrics": ["ncc"]}))
        output = tmp_path / "result.json"

        result = runner.invoke(app, ["search", live_path, reference_path, "-c", str(config_path), "-o", str(output)])
        assert result.exit_code == 0, result.stdout
        payload = json.loads(output.read_text())
        assert list(payload["poses"]) == ["ncc"]
        assert payload["poses"]["ncc"]["index"] == [30, 25]

    def test_search_snapshots(self, map_files, tmp_path):
        live_path, reference_path, _ = map_files
        snapshots = tmp_path / "snapshots"
        result = runner.invoke(app, [
            "search", live_path, reference_path,
            "--angle-increment", "180",
            "--correlation-stride", "4",
            "--snapshots", str(snapshots),
        ])
        assert result.exit_code == 0, result.stdout
        assert sorted(p.name for p in snapshots.iterdir()) == ["rotation_000.npz", "rotation_180.npz"]

    def test_search_weighted_without_variance(self, tmp_path):
        reference = make_reference_map((40, 40), seed=3)
        reference_path = save_raster(reference, tmp_path / "reference.npz")
        result = runner.invoke(app, ["search", reference_path, reference_path, "--weighted"])
        assert result.exit_code == 1
        assert "variance" in result.stdout

    def test_search_invalid_config(self, map_files):
        live_path, reference_path, _ = map_files
        result = runner.invoke(app, ["search", live_path, reference_path, "--angle-increment", "0"])
        assert result.exit_code == 1

    def test_search_missing_file(self, tmp_path):
        result = runner.invoke(app, ["search", str(tmp_path / "a.npz"), str(tmp_path / "b.npz")])
        assert result.exit_code != 0

    def test_demo(self, tmp_path):
        result = runner.invoke(app, ["demo", "--save-dir", str(tmp_path / "demo")])
        assert result.exit_code == 0, result.stdout
        assert (tmp_path / "demo" / "reference.npz").exists()
        assert (tmp_path / "demo" / "live.npz").exists()
        assert "True pose" in result.stdout
