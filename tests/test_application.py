import numpy as np
import pytest

from core import Application
from main import build_parser, main
from swarm.params import SwarmParams


def _params(**overrides):
    values = dict(num_birds=30, boundary=100.0, seed=11, collision_distance=5.0)
    values.update(overrides)
    return SwarmParams(**values)


@pytest.mark.parametrize("mode", ["scalar", "grid", "batched", "parallel"])
def test_headless_run_completes(mode):
    app = Application(_params(mode=mode), ticks=5, log_interval=0, verbose=False)
    assert app.run() == 5
    assert app.swarm.tick == 5
    assert app.sim_time == pytest.approx(5.0)
    assert len(app.appearances) == 30


def test_integration_moves_birds_by_velocity():
    app = Application(_params(dt=0.5), ticks=1, log_interval=0, verbose=False)
    before = app.swarm.population.snapshot()
    app.update()
    committed = app.swarm.last_result
    expected_v = committed.velocities + committed.accelerations * 0.5
    assert np.allclose(app.swarm.population.velocities, expected_v)
    assert np.allclose(app.swarm.population.positions, committed.positions + expected_v * 0.5)
    assert np.array_equal(app.swarm.population.ids, before.ids)


def test_collisions_only_change_appearance():
    params = _params(num_birds=2, collision_distance=1000.0)
    app = Application(params, ticks=1, log_interval=0, verbose=False)
    original = dict(app.appearances)
    app.update()
    assert app.collision_count == 1
    assert app.appearances[0].color != original[0].color
    assert app.appearances[1] == original[1]


def test_stop_ends_loop():
    app = Application(_params(), ticks=100, log_interval=0, verbose=False)
    app.stop()
    assert app.run() == 0


def test_progress_output(capsys):
    app = Application(_params(), ticks=2, log_interval=1)
    app.run()
    out = capsys.readouterr().out
    assert "[App] Ready!" in out
    assert "[Swarm] Tick: 1" in out


def test_cli_parses_overrides():
    args = build_parser().parse_args(["--preset", "fast", "-n", "40", "--mode", "grid", "--seed", "3"])
    assert args.preset == "fast"
    assert args.num_birds == 40
    assert args.mode == "grid"
    assert args.seed == 3


def test_cli_runs_quietly(capsys):
    main(["-n", "8", "--ticks", "2", "--seed", "1", "--quiet"])
    assert capsys.readouterr().out == ""


def test_cli_reports_invalid_configuration():
    with pytest.raises(SystemExit):
        main(["--boundary", "-5", "--quiet"])
