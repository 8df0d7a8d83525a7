# visualize.py
import os
import numpy as np
import matplotlib.pyplot as plt

LEVEL_LABELS = {"icache": "I$", "dcache": "D$", "l2cache": "L2$"}


def _ensure_dir(outpath):
    dirname = os.path.dirname(outpath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def plot_latency_distribution(latencies, outpath):
    _ensure_dir(outpath)
    latencies = np.asarray(latencies)
    avg = latencies.mean() if latencies.size else 0.0
    plt.figure(figsize=(8,4))
    plt.plot(np.sort(latencies), marker='.', linewidth=0.5)
    plt.title(f"Access Latency Distribution (avg {avg:.2f} cycles)")
    plt.xlabel("Sorted Access Index")
    plt.ylabel("Latency (cycles)")
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_hit_miss_rates(summary, outpath):
    _ensure_dir(outpath)
    levels = [name for name, entry in summary["levels"].items() if entry["present"]]
    miss_rates = np.array([summary["levels"][name]["miss_rate"] for name in levels])
    x = np.arange(len(levels))
    plt.figure(figsize=(6,4))
    plt.bar(x - 0.2, 1.0 - miss_rates, width=0.4, label='Hit')
    plt.bar(x + 0.2, miss_rates, width=0.4, label='Miss')
    plt.xticks(x, [LEVEL_LABELS.get(name, name) for name in levels])
    plt.ylim(0, 1)
    plt.ylabel("Rate")
    plt.title("Cache Hit/Miss Rate per Level")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
