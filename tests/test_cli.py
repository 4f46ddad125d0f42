"""Tests for the command-line analyzer."""
import json

import pytest
from click.testing import CliRunner

from collage_cli.cli import cli

from conftest import checkerboard, png_bytes, solid


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def image_path(tmp_path):
    path = tmp_path / "canvas.png"
    path.write_bytes(png_bytes(solid(80, 40, (200, 120, 60))))
    return path


def json_output(result):
    return json.loads(result.output[result.output.index("{"):])


def test_text_report(runner, image_path):
    result = runner.invoke(cli, [str(image_path), "--seed", "1"])
    assert result.exit_code == 0, result.output
    assert "Features:" in result.output
    assert "temperature: warm" in result.output
    assert "Recommendations:" in result.output
    assert "high-contrast photocopy" in result.output
    assert "**" not in result.output
    assert "Overlay:" in result.output


def test_json_report(runner, image_path):
    result = runner.invoke(cli, [str(image_path), "--json", "-s", "3"])
    assert result.exit_code == 0, result.output
    body = json_output(result)
    assert body["features"]["dominant_color"] == [200, 120, 60]
    assert (body["width"], body["height"]) == (80, 40)
    assert len(body["recommendations"]) == 3
    assert "overlay" not in body


def test_overlay_placement(runner, image_path):
    result = runner.invoke(cli, [str(image_path), "--json", "--overlay", "-s", "3"])
    body = json_output(result)
    assert body["overlay"]["kind"] == body["overlay_kind"]
    assert (body["overlay"]["width"], body["overlay"]["height"]) == (36, 10)


def test_seed_makes_output_reproducible(runner, tmp_path):
    path = tmp_path / "check.png"
    path.write_bytes(png_bytes(checkerboard(60, 60)))
    args = [str(path), "--json", "--overlay", "-s", "42"]
    assert json_output(runner.invoke(cli, args)) == json_output(runner.invoke(cli, args))


def test_max_width(runner, tmp_path):
    path = tmp_path / "wide.png"
    path.write_bytes(png_bytes(solid(400, 100, (0, 0, 0))))
    body = json_output(runner.invoke(cli, [str(path), "--json", "--max-width", "100"]))
    assert (body["width"], body["height"]) == (100, 25)


def test_undecodable_file(runner, tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    result = runner.invoke(cli, [str(path)])
    assert result.exit_code == 1
    assert "Cannot decode image" in result.output


def test_missing_file(runner, tmp_path):
    result = runner.invoke(cli, [str(tmp_path / "nope.png")])
    assert result.exit_code == 2
