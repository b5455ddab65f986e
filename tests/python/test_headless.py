import csv
import json

import pytest

from predprey.app.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic")
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "tick",
        "sim_time",
        "prey",
        "predators",
        "prey_births",
        "predator_births",
        "eaten",
        "tick_ms",
    ]
    assert rows[1][0] == "1"
    assert rows[2][-1] == "0.000"


def test_headless_detailed_log_consistency(tmp_path):
    log_path = tmp_path / "detailed.csv"
    run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    idx = {name: i for i, name in enumerate(header)}
    for row in rows[1:]:
        prey = int(row[idx["prey"]])
        predators = int(row[idx["predators"]])
        assert int(row[idx["prey_males"]]) + int(row[idx["prey_females"]]) == prey
        assert int(row[idx["predator_males"]]) + int(row[idx["predator_females"]]) == predators
        expected_ratio = 0.0 if prey == 0 else predators / prey
        assert float(row[idx["predator_prey_ratio"]]) == pytest.approx(expected_ratio, abs=1e-4)
        assert row[idx["clock"]] == "0:00"


def test_headless_deterministic_logs_match(tmp_path):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    run_headless(steps=120, seed=4, log_path=first, deterministic_log=True)
    run_headless(steps=120, seed=4, log_path=second, deterministic_log=True)

    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    clock = run_headless(steps=4, seed=3, log_path=None, summary_path=summary_path, log_format="basic")
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["log_format"] == "basic"
    assert payload["final"] == {"prey": len(clock.prey), "predators": len(clock.predators)}
    assert "tick_ms" in payload
    assert payload["simulation_time"] == pytest.approx(4 / 60)


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "small.yaml"
    config_path.write_text("prey:\n  initial_count: 3\npredator:\n  initial_count: 0\n")

    clock = run_headless(steps=0, seed=1, log_path=None, config_path=config_path)

    assert len(clock.prey) == 3
    assert clock.predators == []


def test_headless_speed_factor_is_clamped(tmp_path):
    clock = run_headless(steps=1, seed=1, log_path=None, speed_factor=10.0)

    assert clock.speed_factor == 3.0
    assert clock.simulation_time == pytest.approx(3.0 / 60)


def test_headless_rejects_unknown_log_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="fancy")
