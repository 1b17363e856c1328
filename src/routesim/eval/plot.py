from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd


def plot_summary(input_csv: str, out_png: str) -> None:
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        import seaborn as sns
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("matplotlib and seaborn are required for plotting") from exc

    df = pd.read_csv(input_csv)
    df["delivery_ratio"] = df["delivery_ratio"].fillna(0.0)

    plt.figure(figsize=(10, 4))
    sns.barplot(x="run_id", y="delivery_ratio", hue="algorithm", data=df, dodge=False)
    plt.xticks(rotation=75, fontsize=8)
    plt.xlabel("Run")
    plt.ylabel("Delivery Ratio")
    plt.ylim(0.0, 1.05)
    plt.legend(title="Algorithm")
    plt.tight_layout()
    Path(out_png).parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_png, dpi=150)
    plt.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Plot summary CSV")
    parser.add_argument("--in", dest="input_csv", required=True)
    parser.add_argument("--out", dest="out_png", required=True)
    args = parser.parse_args()
    plot_summary(args.input_csv, args.out_png)
