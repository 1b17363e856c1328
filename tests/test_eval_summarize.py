from __future__ import annotations

import pandas as pd
import pytest

from routesim.backends.emu import EmuBackend
from routesim.eval.metrics import compute_metrics
from routesim.eval.summarize import main, summarize_runs


def test_compute_metrics_ratios():
    row = compute_metrics(
        {
            "run_id": "r1",
            "algorithm": "dijkstra",
            "packets_spawned": 10,
            "packets_delivered": 7,
            "packets_lost": 2,
            "trace_digests": ["a", "b", "a"],
            "shortest_path": {"reachable": True, "cost": 13},
        }
    )
    assert row["delivery_ratio"] == pytest.approx(0.7)
    assert row["loss_ratio"] == pytest.approx(0.2)
    assert row["trace_changes"] == 2
    assert row["path_cost"] == 13
    assert compute_metrics({})["delivery_ratio"] is None


def test_summarize_runs_writes_csv(tmp_path, capsys):
    runs = tmp_path / "runs"
    for algorithm in ("dijkstra", "bellman_ford"):
        EmuBackend().run(
            {
                "name": algorithm,
                "seed": 5,
                "algorithm": algorithm,
                "topology": {"type": "classic"},
                "engine": {"duration": 4.0, "frame_interval": 0.25},
                "traffic": {"initial_packets": 6},
                "output_dir": str(runs),
            }
        )

    df = summarize_runs(str(runs), str(tmp_path / "summary.csv"))

    assert len(df) == 2
    loaded = pd.read_csv(tmp_path / "summary.csv")
    assert sorted(loaded["algorithm"]) == ["bellman_ford", "dijkstra"]
    assert (loaded["packets_spawned"] == 6).all()

    assert main(["--runs", str(runs), "--out", str(tmp_path / "cli" / "summary.csv")]) == 0
    totals = pd.read_csv(tmp_path / "cli" / "summary.by_algorithm.csv")
    assert list(totals["algorithm"]) == ["bellman_ford", "dijkstra"]
    assert list(totals["runs"]) == [1, 1]
    assert (totals["packets_spawned"] == 6).all()
    assert "bellman_ford" in capsys.readouterr().out


def test_plot_summary_writes_png(tmp_path):
    from routesim.eval.plot import plot_summary

    csv_path = tmp_path / "summary.csv"
    pd.DataFrame(
        [
            {"run_id": "a", "algorithm": "dijkstra", "delivery_ratio": 0.8},
            {"run_id": "b", "algorithm": "bellman_ford", "delivery_ratio": None},
        ]
    ).to_csv(csv_path, index=False)

    plot_summary(str(csv_path), str(tmp_path / "plots" / "summary.png"))

    assert (tmp_path / "plots" / "summary.png").stat().st_size > 0
