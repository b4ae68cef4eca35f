"""Tests for the rich dashboard helpers that carry logic."""

import unittest

from ui.dashboard import TransferProgress, sparkline


class TestSparkline(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(sparkline([]), "No data")

    def test_one_glyph_per_sample(self):
        self.assertEqual(len(sparkline([5.0, 7.0, 6.0])), 3)

    def test_extremes_map_to_lowest_and_highest(self):
        line = sparkline([1.0, 9.0])
        self.assertEqual(line, "▁█")

    def test_flat_series(self):
        self.assertEqual(sparkline([4.0, 4.0, 4.0]), "▁▁▁")


class TestTransferProgress(unittest.TestCase):
    def test_fraction_becomes_window_count(self):
        bar = TransferProgress("download", windows=4)
        bar.update(0.5, 12.0)
        task = bar.progress.tasks[0]
        self.assertEqual(task.total, 4)
        self.assertEqual(task.completed, 2)
        self.assertEqual(task.fields["speed"], "12.00 Mbps")

    def test_no_speed_yet(self):
        bar = TransferProgress("upload", windows=2)
        bar.update(0.5, 0.0)
        self.assertEqual(bar.progress.tasks[0].fields["speed"], "...")


if __name__ == "__main__":
    unittest.main()
