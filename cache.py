# cache.py
import logging

logger = logging.getLogger(__name__)

ADDRESS_MASK = 0xFFFFFFFF
# Age reported for a line invalidated to keep inclusion; always the first victim.
SENTINEL = 0xFFFFFFFF


class CacheLine:
    __slots__ = ("tag", "valid", "recency", "evicted")

    def __init__(self):
        self.tag = 0
        self.valid = False
        self.recency = 0
        self.evicted = False

    @property
    def age(self):
        return SENTINEL if self.evicted else self.recency

    def __repr__(self):
        state = "evicted" if self.evicted else ("valid" if self.valid else "empty")
        return f"CacheLine(tag={self.tag:#x}, {state}, recency={self.recency})"


class SetAssocCache:
    """
    Set-associative tag array with LRU replacement driven by aging counters.
    Only tags are tracked; there is no data storage.

    Each set keeps one age per way. Every access to a set ages the other ways,
    a hit or fill resets the touched way to 0, and the victim is the way with
    the largest age (lowest way index on ties).
    """

    def __init__(self, num_sets, associativity, block_size, hit_time=1, name="cache"):
        self.name = name
        self.num_sets = num_sets
        self.associativity = associativity
        self.block_size = block_size
        self.hit_time = hit_time
        self.offset_bits = block_size.bit_length() - 1
        self.index_bits = num_sets.bit_length() - 1
        self.sets = [[CacheLine() for _ in range(associativity)] for _ in range(num_sets)]

    def decompose(self, addr):
        """Split a 32-bit address into (set index, tag); the block offset is dropped."""
        block = (addr & ADDRESS_MASK) >> self.offset_bits
        return block & (self.num_sets - 1), block >> self.index_bits

    def _age_set(self, lines):
        for line in lines:
            if not line.evicted:
                line.recency += 1

    def victim(self, index):
        lines = self.sets[index]
        victim_way = 0
        largest = 0
        for way, line in enumerate(lines):
            if line.age > largest:
                largest = line.age
                victim_way = way
        return victim_way

    def probe(self, addr):
        """
        Look up `addr` and update LRU state.
        Returns (hit, index, way). On a hit `way` is the matching way; on a miss
        it is the victim chosen for the fill and the whole set has been aged.
        """
        index, tag = self.decompose(addr)
        lines = self.sets[index]
        for way, line in enumerate(lines):
            if line.valid and line.tag == tag:
                self._age_set(lines)
                line.recency = 0
                return True, index, way

        victim_way = self.victim(index)
        self._age_set(lines)
        return False, index, victim_way

    def install(self, index, way, tag):
        line = self.sets[index][way]
        line.tag = tag
        line.valid = True
        line.evicted = False
        line.recency = 0

    def invalidate(self, addr):
        """Drop the block holding `addr`, marking its way as the next victim."""
        index, tag = self.decompose(addr)
        found = False
        for line in self.sets[index]:
            if line.valid and line.tag == tag:
                line.tag = 0
                line.valid = False
                line.evicted = True
                line.recency = SENTINEL
                found = True
        if found:
            logger.debug("%s: invalidated block %#010x in set %d", self.name, addr & ADDRESS_MASK, index)
        return found

    def block_address(self, index, way):
        """Block-aligned address of the line held in (index, way)."""
        tag = self.sets[index][way].tag
        return (((tag << self.index_bits) | index) << self.offset_bits) & ADDRESS_MASK

    def contains(self, addr):
        index, tag = self.decompose(addr)
        return any(line.valid and line.tag == tag for line in self.sets[index])

    def stats(self):
        used_lines = sum(line.valid for s in self.sets for line in s)
        return {
            "name": self.name,
            "cache_size_bytes": self.num_sets * self.associativity * self.block_size,
            "line_size": self.block_size,
            "associativity": self.associativity,
            "num_sets": self.num_sets,
            "hit_time": self.hit_time,
            "used_lines": used_lines,
        }
