"""Tests for the twobody command-line driver."""

import pytest
from typer.testing import CliRunner

from twobody.cli import app

runner = CliRunner()


def _rows(output: str) -> list[list[float]]:
    return [[float(x) for x in line.split(",")] for line in output.strip().splitlines()]


class TestOutput:
    def test_default_prints_positions(self):
        result = runner.invoke(app, ["--steps", "3"])
        assert result.exit_code == 0, result.output
        rows = _rows(result.output)
        assert len(rows) == 3
        assert all(len(row) == 4 for row in rows)

    def test_first_row_near_initial_positions(self):
        result = runner.invoke(app, ["--steps", "1", "--h", "1e-6"])
        assert result.exit_code == 0, result.output
        (row,) = _rows(result.output)
        assert row == pytest.approx([0.0, 0.0, 1.0, 1.0], abs=1e-5)

    def test_center_of_mass_moves_uniformly(self):
        # Equal masses with opposite velocities: the midpoint stays at (0.5, 0.5)
        result = runner.invoke(app, ["--steps", "50"])
        assert result.exit_code == 0, result.output
        for x1, y1, x2, y2 in _rows(result.output):
            assert (x1 + x2) / 2.0 == pytest.approx(0.5)
            assert (y1 + y2) / 2.0 == pytest.approx(0.5)

    @pytest.mark.parametrize("method", ["euler", "rk4", "ab2", "am2", "rk45"])
    def test_every_method_runs(self, method):
        result = runner.invoke(app, ["--method", method, "--steps", "5"])
        assert result.exit_code == 0, result.output
        assert len(_rows(result.output)) == 5

    def test_three_dimensional_input(self):
        result = runner.invoke(
            app,
            ["--steps", "2", "--pos1", "0,0,0", "--pos2", "1,1,0.5", "--vel1", "0.5,0,0", "--vel2", "-0.5,0,0.1"],
        )
        assert result.exit_code == 0, result.output
        assert all(len(row) == 6 for row in _rows(result.output))

    def test_rk45_stops_after_max_time(self):
        result = runner.invoke(
            app, ["--method", "rk45", "--steps", "100000", "--max-time", "0.05", "--h", "0.01"]
        )
        assert result.exit_code == 0, result.output
        assert 0 < len(_rows(result.output)) < 100000

    def test_kepler_drift_is_small(self):
        result = runner.invoke(app, ["--kepler", "--steps", "100"])
        assert result.exit_code == 0, result.output
        rows = _rows(result.output)
        assert len(rows) == 100
        assert rows[-1][0] == pytest.approx(0.1)
        assert all(drift < 1e-6 for _, drift in rows)


class TestBadInput:
    def test_negative_mass(self):
        result = runner.invoke(app, ["--m1=-1"])
        assert result.exit_code == 2

    def test_malformed_vector(self):
        result = runner.invoke(app, ["--pos1", "a,b"])
        assert result.exit_code == 2

    def test_wrong_component_count(self):
        result = runner.invoke(app, ["--vel2", "1,2,3,4"])
        assert result.exit_code == 2

    def test_mixed_dimensions(self):
        result = runner.invoke(app, ["--pos1", "0,0,0", "--vel1", "0,0,0"])
        assert result.exit_code == 2

    def test_unknown_method(self):
        result = runner.invoke(app, ["--method", "rk8"])
        assert result.exit_code == 2
