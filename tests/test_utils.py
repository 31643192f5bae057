import unittest

from tag_schema import utils


class DateTimeTests(unittest.TestCase):
    def test_is_datetime(self):
        self.assertTrue(utils.is_datetime("2025-08-03T00:00:00Z"))
        self.assertTrue(utils.is_datetime("2025-08-03T00:00:00.5+01:00"))
        self.assertTrue(utils.is_datetime("2025-08-03t00:00:00z"))
        self.assertFalse(utils.is_datetime("2025-08-03"))
        self.assertFalse(utils.is_datetime("2025-08-03T25:00:00Z"))
        self.assertFalse(utils.is_datetime(20250803))

    def test_long_fractions_are_accepted(self):
        self.assertTrue(utils.is_datetime("2025-08-03T00:00:00.123456789012Z"))


class PathLabelTests(unittest.TestCase):
    def test_join_field(self):
        self.assertEqual(utils.join_field("", "name"), "name")
        self.assertEqual(utils.join_field("outer", "inner"), "outer.inner")

    def test_index_and_entry_labels(self):
        self.assertEqual(utils.index_label("tags", 3), "tags[3]")
        self.assertEqual(utils.entry_label("attrs", "k", "key"), "attrs[k](key)")
        self.assertEqual(utils.entry_label("attrs", 7, "value"), "attrs[7](value)")


if __name__ == "__main__":
    unittest.main()
