from pathlib import Path
import unittest

from ddt_DataDrivenManager.core.cache import RecordCache, cache_key
from ddt_DataDrivenManager.core.model import LoadOptions
from ddt_DataDrivenManager.core.selection import filter_records, matches, sample_records


def _records(n):
    return [{"id": i, "name": f"user{i}"} for i in range(n)]


class FilterTests(unittest.TestCase):
    def test_exact_match_keeps_relative_order(self):
        records = [{"t": "smoke", "n": 1}, {"t": "regression", "n": 2}, {"t": "smoke", "n": 3}]
        kept = filter_records(records, {"t": "smoke"})
        self.assertEqual([1, 3], [r["n"] for r in kept])

    def test_wildcard_is_anchored_and_case_insensitive(self):
        criteria = {"name": "test*"}
        self.assertTrue(matches({"name": "testAlpha"}, criteria))
        self.assertTrue(matches({"name": "testing"}, criteria))
        self.assertTrue(matches({"name": "TESTER"}, criteria))
        self.assertFalse(matches({"name": "mytest"}, criteria))

    def test_wildcard_escapes_regex_characters(self):
        self.assertTrue(matches({"email": "a.b@x.org"}, {"email": "*.b@*"}))
        self.assertFalse(matches({"email": "aXb@x.org"}, {"email": "a.b*"}))

    def test_every_criterion_must_match(self):
        records = [{"t": "smoke", "p": "high"}, {"t": "smoke", "p": "low"}]
        self.assertEqual([{"t": "smoke", "p": "high"}], filter_records(records, {"t": "smoke", "p": "high"}))

    def test_missing_field_does_not_match(self):
        self.assertFalse(matches({"other": "x"}, {"name": "*"}))
        self.assertFalse(matches({"other": "x"}, {"name": "x"}))

    def test_exact_match_is_type_strict(self):
        # CSV values are strings; 1 != "1"
        self.assertFalse(matches({"id": "1"}, {"id": 1}))

    def test_no_criteria_returns_copy(self):
        records = _records(3)
        out = filter_records(records, None)
        self.assertEqual(records, out)
        self.assertIsNot(records, out)


class SampleTests(unittest.TestCase):
    def test_head_sample_is_deterministic(self):
        records = _records(5)
        first = sample_records(records, 2)
        second = sample_records(records, 2)
        self.assertEqual([0, 1], [r["id"] for r in first])
        self.assertEqual(first, second)

    def test_random_sample_without_replacement(self):
        records = _records(20)
        picked = sample_records(records, 7, random_sample=True, seed=123)
        ids = [r["id"] for r in picked]
        self.assertEqual(7, len(set(ids)))
        self.assertEqual(sorted(ids), ids)  # source order kept
        self.assertEqual(picked, sample_records(records, 7, random_sample=True, seed=123))

    def test_sample_larger_than_input_is_noop(self):
        records = _records(3)
        self.assertEqual(records, sample_records(records, 10, random_sample=True))

    def test_negative_sample_rejected(self):
        with self.assertRaises(ValueError):
            sample_records(_records(3), -1)


class CacheKeyTests(unittest.TestCase):
    def test_filter_order_does_not_change_key(self):
        a = LoadOptions(filter_criteria={"t": "smoke", "p": "high"})
        b = LoadOptions(filter_criteria={"p": "high", "t": "smoke"})
        self.assertEqual(cache_key(Path("data.csv"), a), cache_key(Path("data.csv"), b))

    def test_use_cache_flag_is_not_part_of_key(self):
        self.assertEqual(cache_key(Path("d.json"), LoadOptions(use_cache=True)),
                         cache_key(Path("d.json"), LoadOptions(use_cache=False)))

    def test_different_options_give_different_keys(self):
        self.assertNotEqual(cache_key(Path("d.json"), LoadOptions(sample_size=2)),
                            cache_key(Path("d.json"), LoadOptions(sample_size=3)))
        self.assertNotEqual(cache_key(Path("a.json"), LoadOptions()),
                            cache_key(Path("b.json"), LoadOptions()))

    def test_relative_and_absolute_paths_share_key(self):
        rel = Path("data.csv")
        self.assertEqual(cache_key(rel, LoadOptions()), cache_key(rel.resolve(), LoadOptions()))


class RecordCacheTests(unittest.TestCase):
    def test_stats_and_clear(self):
        cache = RecordCache()
        cache.put_records("k1", _records(2))
        cache.put_config(Path("cfg.json"), {"env": "qa"})
        stats = cache.stats()
        self.assertEqual(1, stats.test_data_entries)
        self.assertEqual(1, stats.config_entries)
        self.assertGreater(stats.total_bytes, 0)
        self.assertTrue(stats.total_memory_usage.endswith(" KB"))

        cache.clear()
        stats = cache.stats()
        self.assertEqual((0, 0, 0), (stats.test_data_entries, stats.config_entries, stats.total_bytes))
        self.assertIsNone(cache.get_records("k1"))
        self.assertEqual((False, None), cache.get_config(Path("cfg.json")))
