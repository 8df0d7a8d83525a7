# hierarchy.py
import logging

from cache import SetAssocCache

logger = logging.getLogger(__name__)

INSTRUCTION = "I"
DATA = "D"


class CacheStats:
    """Reference/miss/penalty counters for one level."""

    def __init__(self, refs=0, misses=0, penalties=0):
        self.refs = refs
        self.misses = misses
        self.penalties = penalties

    def copy(self):
        return CacheStats(self.refs, self.misses, self.penalties)

    @property
    def miss_rate(self):
        return self.misses / self.refs if self.refs else 0.0

    def avg_access_time(self, hit_time):
        if not self.refs:
            return 0.0
        return hit_time + self.penalties / self.refs

    def to_dict(self):
        return {"refs": self.refs, "misses": self.misses, "penalties": self.penalties}


class CacheHierarchy:
    """
    Split L1 instruction/data caches over a shared L2 and flat-latency memory.

    Each access runs to completion, including the cascade into L2 and memory,
    and returns its latency in cycles. A level configured with zero sets is
    bypassed and never counts references.
    """

    def __init__(self, config):
        self.config = config
        self.inclusive = config.inclusive
        self.mem_latency = config.mem_latency
        self.icache = self._build("icache", config.icache)
        self.dcache = self._build("dcache", config.dcache)
        self.l2cache = self._build("l2cache", config.l2cache)
        self._stats = {name: CacheStats() for name in ("icache", "dcache", "l2cache")}
        self.l2_did_evict = False
        self.l2_evicted_addr = 0

    def _build(self, name, level):
        if not level.present:
            return None
        return SetAssocCache(level.sets, level.assoc, self.config.block_size, level.hit_time, name=name)

    @property
    def stats(self):
        """Snapshot of the counters; editing it does not affect the simulation."""
        return {name: stats.copy() for name, stats in self._stats.items()}

    def reset_stats(self):
        for name in self._stats:
            self._stats[name] = CacheStats()

    def access(self, addr, kind):
        if kind == INSTRUCTION:
            return self.icache_access(addr)
        if kind == DATA:
            return self.dcache_access(addr)
        raise ValueError(f"unknown access kind {kind!r}, expected 'I' or 'D'")

    def icache_access(self, addr):
        return self._l1_access(self.icache, self._stats["icache"], addr)

    def dcache_access(self, addr):
        return self._l1_access(self.dcache, self._stats["dcache"], addr)

    def _l1_access(self, l1, stats, addr):
        if l1 is None:
            return self.l2cache_access(addr)

        stats.refs += 1
        hit, index, way = l1.probe(addr)
        if hit:
            return l1.hit_time

        stats.misses += 1
        logger.debug("%s: miss on %#010x in set %d", l1.name, addr & 0xFFFFFFFF, index)
        l1.install(index, way, l1.decompose(addr)[1])
        l2_time = self.l2cache_access(addr)

        # Only the L1 that triggered the L2 miss is checked, so a copy of the
        # evicted block in the other L1 survives.
        if self.inclusive and self.l2_did_evict:
            l1.invalidate(self.l2_evicted_addr)

        stats.penalties += l2_time
        return l1.hit_time + l2_time

    def l2cache_access(self, addr):
        self.l2_did_evict = False
        l2 = self.l2cache
        if l2 is None:
            return self.mem_latency

        stats = self._stats["l2cache"]
        stats.refs += 1
        hit, index, way = l2.probe(addr)
        if hit:
            return l2.hit_time

        stats.misses += 1
        logger.debug("l2cache: miss on %#010x in set %d", addr & 0xFFFFFFFF, index)
        if l2.sets[index][way].valid:
            self.l2_did_evict = True
            self.l2_evicted_addr = l2.block_address(index, way)
            logger.debug("l2cache: evicting block %#010x from set %d way %d", self.l2_evicted_addr, index, way)
        l2.install(index, way, l2.decompose(addr)[1])

        stats.penalties += self.mem_latency
        return l2.hit_time + self.mem_latency

    def summary(self):
        summary = {}
        for name, level in self.config.levels():
            stats = self._stats[name]
            entry = stats.to_dict()
            entry["present"] = level.present
            entry["miss_rate"] = stats.miss_rate
            entry["avg_access_time"] = stats.avg_access_time(level.hit_time)
            summary[name] = entry
        return summary
