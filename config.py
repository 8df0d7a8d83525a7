# config.py
import json


class CacheConfigError(ValueError):
    """Raised when a hierarchy configuration can not be simulated."""


def is_power_of_two(n):
    return n > 0 and (n & (n - 1)) == 0


def as_int(name, value):
    if isinstance(value, bool):
        raise CacheConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise CacheConfigError(f"{name} must be an integer, got {value!r}") from None


def as_bool(name, value):
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "false", "no", "0"):
        return value.strip().lower() in ("true", "yes", "1")
    raise CacheConfigError(f"{name} must be true or false, got {value!r}")


class LevelConfig:
    """
    Geometry and timing of one cache level.
    A level with zero sets is absent and passes every request through.
    """

    def __init__(self, sets=0, assoc=1, hit_time=1):
        self.sets = as_int("sets", sets)
        self.assoc = as_int("assoc", assoc)
        self.hit_time = as_int("hit_time", hit_time)

    @property
    def present(self):
        return self.sets > 0

    @classmethod
    def from_dict(cls, cfg, sets=0, assoc=1, hit_time=1, name="level"):
        cfg = cfg or {}
        if not isinstance(cfg, dict):
            raise CacheConfigError(f"{name} section must be an object, got {cfg!r}")
        try:
            return cls(
                sets=cfg.get("sets", sets),
                assoc=cfg.get("assoc", assoc),
                hit_time=cfg.get("hit_time", hit_time),
            )
        except CacheConfigError as e:
            raise CacheConfigError(f"{name}: {e}") from None

    def to_dict(self):
        return {"sets": self.sets, "assoc": self.assoc, "hit_time": self.hit_time}

    def __repr__(self):
        return f"LevelConfig(sets={self.sets}, assoc={self.assoc}, hit_time={self.hit_time})"


class HierarchyConfig:
    """
    Split I$/D$ over a shared L2, one block size, flat memory latency.
    Validated on construction.
    """

    def __init__(self, icache, dcache, l2cache, inclusive=False, block_size=64, mem_latency=100):
        self.icache = icache
        self.dcache = dcache
        self.l2cache = l2cache
        self.inclusive = as_bool("inclusive", inclusive)
        self.block_size = as_int("block_size", block_size)
        self.mem_latency = as_int("memspeed", mem_latency)
        self.validate()

    @classmethod
    def from_dict(cls, cfg):
        if not isinstance(cfg, dict):
            raise CacheConfigError(f"configuration must be an object, got {cfg!r}")
        l2 = LevelConfig.from_dict(cfg.get("l2cache"), sets=512, assoc=4, hit_time=10, name="l2cache")
        return cls(
            icache=LevelConfig.from_dict(cfg.get("icache"), sets=256, assoc=1, hit_time=2, name="icache"),
            dcache=LevelConfig.from_dict(cfg.get("dcache"), sets=256, assoc=1, hit_time=2, name="dcache"),
            l2cache=l2,
            inclusive=(cfg.get("l2cache") or {}).get("inclusive", False),
            block_size=cfg.get("block_size", 64),
            mem_latency=cfg.get("memspeed", 100),
        )

    def to_dict(self):
        l2 = self.l2cache.to_dict()
        l2["inclusive"] = self.inclusive
        return {
            "icache": self.icache.to_dict(),
            "dcache": self.dcache.to_dict(),
            "l2cache": l2,
            "block_size": self.block_size,
            "memspeed": self.mem_latency,
        }

    def levels(self):
        return (("icache", self.icache), ("dcache", self.dcache), ("l2cache", self.l2cache))

    def validate(self):
        if not is_power_of_two(self.block_size):
            raise CacheConfigError(f"block size must be a positive power of two, got {self.block_size}")
        if self.mem_latency < 1:
            raise CacheConfigError(f"memory latency must be at least 1 cycle, got {self.mem_latency}")

        for name, level in self.levels():
            if level.sets < 0:
                raise CacheConfigError(f"{name}: set count can not be negative, got {level.sets}")
            if not level.present:
                continue
            if not is_power_of_two(level.sets):
                raise CacheConfigError(f"{name}: set count must be a power of two, got {level.sets}")
            if level.assoc < 1:
                raise CacheConfigError(f"{name}: associativity must be at least 1, got {level.assoc}")
            if level.hit_time < 1:
                raise CacheConfigError(f"{name}: hit time must be at least 1 cycle, got {level.hit_time}")

        if self.inclusive:
            if not self.l2cache.present:
                raise CacheConfigError("inclusion requires an L2 cache")
            for name, level in self.levels()[:2]:
                if level.present and self.l2cache.assoc < level.assoc:
                    raise CacheConfigError(
                        f"inclusion requires L2 associativity ({self.l2cache.assoc}) "
                        f">= {name} associativity ({level.assoc})"
                    )


# Common textbook hierarchies, in the JSON layout accepted by from_dict.
PRESETS = {
    "default": {
        "icache": {"sets": 256, "assoc": 1, "hit_time": 2},
        "dcache": {"sets": 256, "assoc": 1, "hit_time": 2},
        "l2cache": {"sets": 512, "assoc": 4, "hit_time": 10, "inclusive": False},
        "block_size": 64,
        "memspeed": 100,
    },
    "alpha": {
        "icache": {"sets": 512, "assoc": 2, "hit_time": 2},
        "dcache": {"sets": 512, "assoc": 2, "hit_time": 2},
        "l2cache": {"sets": 16384, "assoc": 1, "hit_time": 10, "inclusive": False},
        "block_size": 64,
        "memspeed": 100,
    },
    "mips": {
        "icache": {"sets": 512, "assoc": 2, "hit_time": 2},
        "dcache": {"sets": 256, "assoc": 4, "hit_time": 2},
        "l2cache": {"sets": 1024, "assoc": 8, "hit_time": 10, "inclusive": True},
        "block_size": 64,
        "memspeed": 100,
    },
    "inclusive": {
        "icache": {"sets": 64, "assoc": 2, "hit_time": 1},
        "dcache": {"sets": 64, "assoc": 2, "hit_time": 1},
        "l2cache": {"sets": 256, "assoc": 4, "hit_time": 10, "inclusive": True},
        "block_size": 32,
        "memspeed": 100,
    },
}


def load_config(path="config.json"):
    with open(path, "r") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise CacheConfigError(f"{path}: invalid JSON: {e}") from None
