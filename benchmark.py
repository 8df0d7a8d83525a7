# benchmark.py
import os
import json
import time
import logging
import threading
import numpy as np

from config import CacheConfigError, as_int
from hierarchy import CacheHierarchy, INSTRUCTION, DATA

logger = logging.getLogger(__name__)

# Base addresses of the synthetic text and data segments.
TEXT_BASE = 0x00400000
DATA_BASE = 0x10000000


class TraceGenerator:
    """
    Synthetic instruction/data trace driven by a seeded numpy generator.
    Addresses walk a working set of cache blocks in each segment.
    """

    def __init__(self, cfg, block_size=64):
        if not isinstance(cfg, dict):
            raise CacheConfigError(f"benchmark section must be an object, got {cfg!r}")
        self.rng = np.random.default_rng(cfg.get("random_seed", None))
        self.block_size = block_size
        self.working_set_kb = as_int("working_set_kb", cfg.get("working_set_kb", 1024))
        self.num_blocks = max(1, (self.working_set_kb * 1024) // self.block_size)
        self.num_accesses = as_int("num_accesses", cfg.get("num_accesses", 10000))
        try:
            self.instruction_ratio = float(cfg.get("instruction_ratio", 0.7))
        except (TypeError, ValueError):
            raise CacheConfigError(f"instruction_ratio must be a number, got {cfg.get('instruction_ratio')!r}") from None
        self.access_pattern = cfg.get("access_pattern", "mixed")
        if self.access_pattern not in ("sequential", "random", "mixed"):
            raise CacheConfigError(f"unknown access pattern {self.access_pattern!r}")
        self._seq_ptr = {INSTRUCTION: 0, DATA: 0}

    def _next_sequential(self, kind):
        block = self._seq_ptr[kind]
        self._seq_ptr[kind] = (block + 1) % self.num_blocks
        return block

    def _next_block(self, kind):
        if self.access_pattern == "sequential":
            return self._next_sequential(kind)
        elif self.access_pattern == "random":
            return int(self.rng.integers(0, self.num_blocks))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._next_sequential(kind)
            return int(self.rng.integers(0, self.num_blocks))

    def generate(self):
        for _ in range(self.num_accesses):
            kind = INSTRUCTION if self.rng.random() < self.instruction_ratio else DATA
            base = TEXT_BASE if kind == INSTRUCTION else DATA_BASE
            offset = int(self.rng.integers(0, self.block_size))
            yield kind, (base + self._next_block(kind) * self.block_size + offset) & 0xFFFFFFFF


class TraceRunner:
    """Feeds a trace through one hierarchy, strictly in order."""

    def __init__(self, hierarchy: CacheHierarchy):
        self.hierarchy = hierarchy

    def run(self, records):
        latencies = []
        counts = {INSTRUCTION: 0, DATA: 0}
        start = time.time()
        for kind, addr in records:
            latencies.append(self.hierarchy.access(addr, kind))
            counts[kind] += 1
        end = time.time()

        latencies = np.asarray(latencies, dtype=np.int64)
        total = int(latencies.size)
        summary = {
            "total_accesses": total,
            "instruction_accesses": counts[INSTRUCTION],
            "data_accesses": counts[DATA],
            "total_cycles": int(latencies.sum()),
            "avg_latency_cycles": float(latencies.mean()) if total else 0.0,
            "duration_s": end - start,
            "levels": self.hierarchy.summary(),
        }
        return summary, latencies


class SweepRunner:
    """
    Runs the same trace against several configurations on worker threads.
    Every configuration gets its own hierarchy, so no state is shared.
    """

    def __init__(self, configs, records, num_threads=4):
        self.configs = list(configs)
        self.records = list(records)
        self.num_threads = max(1, num_threads)
        self.results_lock = threading.Lock()
        self.results = {}
        self.errors = []

    def _worker(self, jobs):
        local = {}
        try:
            for name, config in jobs:
                summary, _ = TraceRunner(CacheHierarchy(config)).run(self.records)
                summary["config"] = config.to_dict()
                local[name] = summary
                logger.debug("sweep: finished %s", name)
        except Exception as e:
            logger.error("sweep: %s failed: %s", name, e)
            with self.results_lock:
                self.errors.append(e)
        with self.results_lock:
            self.results.update(local)

    def run(self):
        threads = []
        for i in range(self.num_threads):
            jobs = self.configs[i::self.num_threads]
            if not jobs:
                continue
            t = threading.Thread(target=self._worker, args=(jobs,))
            t.start()
            threads.append(t)
        for t in threads:
            t.join()
        if self.errors:
            raise self.errors[0]
        return dict(self.results)


def save_results(summary, out_cfg):
    results_dir = out_cfg.get("results_dir", "results")
    os.makedirs(results_dir, exist_ok=True)
    path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
    with open(path, "w") as f:
        json.dump(summary, f, indent=2)
    return path
