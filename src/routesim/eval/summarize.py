from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Optional

import pandas as pd

from routesim.eval.metrics import compute_metrics

FIELDS = [
    "run_id",
    "name",
    "algorithm",
    "seed",
    "trace_length",
    "events_applied",
    "packets_spawned",
    "packets_delivered",
    "packets_lost",
    "delivery_ratio",
    "loss_ratio",
    "trace_changes",
    "path_cost",
    "final_digest",
]


def collect_runs(runs_dir: str | Path) -> pd.DataFrame:
    rows = []
    for result_file in sorted(Path(runs_dir).rglob("result.json")):
        with result_file.open("r", encoding="utf-8") as f:
            rows.append(compute_metrics(json.load(f)))
    return pd.DataFrame(rows, columns=FIELDS)


def summarize_runs(runs_dir: str, out_csv: str) -> pd.DataFrame:
    df = collect_runs(runs_dir)
    out_path = Path(out_csv)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)
    return df


def by_algorithm(df: pd.DataFrame) -> pd.DataFrame:
    """Per-algorithm totals and mean delivery ratio."""
    if df.empty:
        return pd.DataFrame(
            columns=["algorithm", "runs", "packets_spawned", "packets_delivered", "packets_lost", "delivery_ratio"]
        )
    grouped = df.groupby("algorithm", sort=True)
    out = grouped[["packets_spawned", "packets_delivered", "packets_lost"]].sum()
    out.insert(0, "runs", grouped.size())
    out["delivery_ratio"] = grouped["delivery_ratio"].mean()
    return out.reset_index()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Summarize run results into CSV")
    parser.add_argument("--runs", required=True, help="Directory containing run folders")
    parser.add_argument("--out", required=True, help="Output CSV path")
    parser.add_argument(
        "--by-algorithm",
        default=None,
        help="Per-algorithm totals CSV (default: <out stem>.by_algorithm.csv next to --out)",
    )
    args = parser.parse_args(argv)

    df = summarize_runs(args.runs, args.out)
    totals = by_algorithm(df)
    out = Path(args.out)
    totals_path = Path(args.by_algorithm) if args.by_algorithm else out.with_name(f"{out.stem}.by_algorithm.csv")
    totals_path.parent.mkdir(parents=True, exist_ok=True)
    totals.to_csv(totals_path, index=False)
    print(totals.to_string(index=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
