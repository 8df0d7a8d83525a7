# main.py
import argparse
import copy
import logging
import sys

from benchmark import TraceGenerator, TraceRunner, save_results
from config import PRESETS, CacheConfigError, HierarchyConfig, load_config
from hierarchy import CacheHierarchy
from tracefile import read_trace
from visualize import plot_hit_miss_rates, plot_latency_distribution

OVERRIDES = {
    "icache_sets": ("icache", "sets"),
    "icache_assoc": ("icache", "assoc"),
    "icache_hit_time": ("icache", "hit_time"),
    "dcache_sets": ("dcache", "sets"),
    "dcache_assoc": ("dcache", "assoc"),
    "dcache_hit_time": ("dcache", "hit_time"),
    "l2cache_sets": ("l2cache", "sets"),
    "l2cache_assoc": ("l2cache", "assoc"),
    "l2cache_hit_time": ("l2cache", "hit_time"),
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Trace-driven two-level cache hierarchy simulator")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--preset", choices=sorted(PRESETS),
                        help="named hierarchy to start from; --config sections are layered on top")
    parser.add_argument("--trace", help="trace file of '<I|D> <hex address>' records")
    for dest in OVERRIDES:
        parser.add_argument("--" + dest.replace("_", "-"), dest=dest, type=int)
    parser.add_argument("--blocksize", type=int)
    parser.add_argument("--memspeed", type=int)
    parser.add_argument("--inclusive", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def build_config(args):
    cfg = {}
    if args.preset or not args.config:
        cfg = copy.deepcopy(PRESETS[args.preset or "default"])
    if args.config:
        file_cfg = load_config(args.config)
        if not isinstance(file_cfg, dict):
            raise CacheConfigError(f"{args.config}: configuration must be an object")
        for key, value in file_cfg.items():
            if isinstance(value, dict) and isinstance(cfg.get(key), dict):
                cfg[key] = {**cfg[key], **value}
            else:
                cfg[key] = value

    for dest, (level, key) in OVERRIDES.items():
        value = getattr(args, dest)
        if value is not None:
            cfg[level] = {**cfg.get(level, {}), key: value}
    if args.inclusive is not None:
        cfg["l2cache"] = {**cfg.get("l2cache", {}), "inclusive": args.inclusive}
    if args.blocksize is not None:
        cfg["block_size"] = args.blocksize
    if args.memspeed is not None:
        cfg["memspeed"] = args.memspeed
    return cfg


def print_report(config, summary):
    print("Cache configuration:")
    for name, level in config.levels():
        if level.present:
            print(f"  {name:8s} sets={level.sets} assoc={level.assoc} hit_time={level.hit_time}")
        else:
            print(f"  {name:8s} absent")
    print(f"  inclusive={config.inclusive} block_size={config.block_size} memspeed={config.mem_latency}")
    print()
    print(f"Accesses: {summary['total_accesses']} "
          f"(I: {summary['instruction_accesses']}, D: {summary['data_accesses']})")
    print(f"Total cycles: {summary['total_cycles']}, avg latency: {summary['avg_latency_cycles']:.2f}")
    for name, entry in summary["levels"].items():
        if not entry["present"]:
            continue
        print(f"{name:8s} refs={entry['refs']:>10d} misses={entry['misses']:>10d} "
              f"miss_rate={entry['miss_rate']:.4f} penalties={entry['penalties']:>12d} "
              f"avg_access_time={entry['avg_access_time']:.2f}")


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        cfg = build_config(args)
        config = HierarchyConfig.from_dict(cfg)
        hierarchy = CacheHierarchy(config)
        runner = TraceRunner(hierarchy)
        if args.trace:
            records = read_trace(args.trace)
        else:
            records = TraceGenerator(cfg.get("benchmark") or {}, block_size=config.block_size).generate()
        summary, latencies = runner.run(records)
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    summary["config"] = config.to_dict()
    out_cfg = cfg.get("output", {})
    print_report(config, summary)
    results_path = save_results(summary, out_cfg)
    print("Results saved to:", results_path)

    if not args.no_plots:
        latency_plot = out_cfg.get("latency_plot", "results/latency_distribution.png")
        hitmiss_plot = out_cfg.get("hitmiss_plot", "results/hit_miss_rate.png")
        plot_latency_distribution(latencies, latency_plot)
        plot_hit_miss_rates(summary, hitmiss_plot)
        print("Plots saved to:", latency_plot, hitmiss_plot)
    return 0


if __name__ == "__main__":
    sys.exit(main())
