import unittest

from cache import SENTINEL, SetAssocCache


def touch(cache, addr):
    """Probe and fill on miss, the way the hierarchy drives a level."""
    hit, index, way = cache.probe(addr)
    if not hit:
        cache.install(index, way, cache.decompose(addr)[1])
    return hit, way


class TestAddressDecomposition(unittest.TestCase):

    def test_index_and_tag(self):
        # 8 sets, 64B lines: 6 offset bits, 3 index bits
        cache = SetAssocCache(8, 2, 64)
        index, tag = cache.decompose(0b1111_101_101010)
        self.assertEqual(index, 5)
        self.assertEqual(tag, 0b1111)

    def test_single_set_has_no_index_bits(self):
        cache = SetAssocCache(1, 4, 16)
        self.assertEqual(cache.decompose(0x1234), (0, 0x123))

    def test_block_address_drops_offset(self):
        cache = SetAssocCache(8, 2, 64)
        hit, way = touch(cache, 0x12345)
        index, _ = cache.decompose(0x12345)
        self.assertEqual(cache.block_address(index, way), 0x12340)

    def test_addresses_are_32_bit(self):
        cache = SetAssocCache(4, 1, 16)
        self.assertEqual(cache.decompose(0x1_0000_0010), cache.decompose(0x10))


class TestProbe(unittest.TestCase):

    def setUp(self):
        self.cache = SetAssocCache(1, 4, 16)

    def test_miss_then_hit(self):
        self.assertFalse(touch(self.cache, 0x40)[0])
        self.assertTrue(touch(self.cache, 0x40)[0])
        self.assertTrue(touch(self.cache, 0x4c)[0])  # same block

    def test_hit_resets_only_the_hit_way(self):
        for addr in (0x00, 0x10, 0x20, 0x30):
            touch(self.cache, addr)
        self.assertEqual([line.recency for line in self.cache.sets[0]], [3, 2, 1, 0])
        touch(self.cache, 0x10)
        self.assertEqual([line.recency for line in self.cache.sets[0]], [4, 0, 2, 1])

    def test_miss_ages_every_way_before_fill(self):
        touch(self.cache, 0x00)
        hit, index, way = self.cache.probe(0x10)
        self.assertFalse(hit)
        self.assertEqual(way, 1)
        self.assertEqual([line.recency for line in self.cache.sets[0]], [1, 2, 2, 2])

    def test_at_most_one_most_recent_way(self):
        for addr in (0x00, 0x10, 0x20, 0x10, 0x30, 0x50, 0x00, 0x60):
            touch(self.cache, addr)
            ages = [line.recency for line in self.cache.sets[0]]
            self.assertEqual(ages.count(0), 1)

    def test_no_duplicate_tags(self):
        for addr in (0x00, 0x10, 0x00, 0x20, 0x10, 0x30, 0x40, 0x00, 0x50):
            touch(self.cache, addr)
        tags = [line.tag for line in self.cache.sets[0] if line.valid]
        self.assertEqual(len(tags), len(set(tags)))


class TestReplacement(unittest.TestCase):

    def setUp(self):
        self.cache = SetAssocCache(1, 4, 16)

    def test_cold_fill_uses_ascending_ways(self):
        ways = [touch(self.cache, addr)[1] for addr in (0x00, 0x10, 0x20, 0x30)]
        self.assertEqual(ways, [0, 1, 2, 3])
        self.assertTrue(all(line.valid for line in self.cache.sets[0]))

    def test_filling_a_set_evicts_nothing(self):
        for addr in (0x00, 0x10, 0x20, 0x30):
            touch(self.cache, addr)
        for addr in (0x00, 0x10, 0x20, 0x30):
            self.assertTrue(self.cache.contains(addr))

    def test_extra_block_evicts_way_zero_after_cold_fill(self):
        for addr in (0x00, 0x10, 0x20, 0x30):
            touch(self.cache, addr)
        hit, way = touch(self.cache, 0x40)
        self.assertFalse(hit)
        self.assertEqual(way, 0)
        self.assertFalse(self.cache.contains(0x00))

    def test_evicts_least_recently_used(self):
        for addr in (0x00, 0x10, 0x20, 0x30):
            touch(self.cache, addr)
        for addr in (0x00, 0x10, 0x30):
            self.assertTrue(touch(self.cache, addr)[0])
        hit, way = touch(self.cache, 0x40)
        self.assertEqual(way, 2)
        self.assertFalse(self.cache.contains(0x20))
        for addr in (0x00, 0x10, 0x30, 0x40):
            self.assertTrue(self.cache.contains(addr))

    def test_ties_go_to_lowest_way(self):
        self.assertEqual(self.cache.victim(0), 0)
        for line in self.cache.sets[0]:
            line.recency = 7
        self.assertEqual(self.cache.victim(0), 0)
        self.cache.sets[0][2].recency = 9
        self.cache.sets[0][3].recency = 9
        self.assertEqual(self.cache.victim(0), 2)


class TestInvalidate(unittest.TestCase):

    def setUp(self):
        self.cache = SetAssocCache(1, 4, 16)
        for addr in (0x00, 0x10, 0x20, 0x30):
            touch(self.cache, addr)

    def test_invalidate_present_block(self):
        self.assertTrue(self.cache.invalidate(0x24))
        self.assertFalse(self.cache.contains(0x20))
        line = self.cache.sets[0][2]
        self.assertFalse(line.valid)
        self.assertEqual(line.age, SENTINEL)

    def test_invalidate_missing_block(self):
        self.assertFalse(self.cache.invalidate(0x70))
        self.assertTrue(all(line.valid for line in self.cache.sets[0]))

    def test_invalidated_way_is_next_victim(self):
        self.cache.invalidate(0x20)
        hit, way = touch(self.cache, 0x50)
        self.assertFalse(hit)
        self.assertEqual(way, 2)
        self.assertTrue(self.cache.contains(0x00))

    def test_invalidated_way_does_not_age(self):
        self.cache.invalidate(0x20)
        touch(self.cache, 0x00)
        touch(self.cache, 0x60)
        self.assertEqual(self.cache.sets[0][2].tag, 0x6)
        self.assertEqual(self.cache.sets[0][2].recency, 0)

    def test_sentinel_ties_go_to_lowest_way(self):
        self.cache.invalidate(0x30)
        self.cache.invalidate(0x10)
        self.assertEqual(self.cache.victim(0), 1)


class TestStats(unittest.TestCase):

    def test_geometry(self):
        cache = SetAssocCache(64, 4, 32, hit_time=3, name="l2cache")
        touch(cache, 0x1000)
        stats = cache.stats()
        self.assertEqual(stats["cache_size_bytes"], 64 * 4 * 32)
        self.assertEqual(stats["used_lines"], 1)
        self.assertEqual(stats["hit_time"], 3)


if __name__ == "__main__":
    unittest.main()
