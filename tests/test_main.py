import os
import tempfile
import unittest

import imageio

from config import Config, save_config
from logging_utils import get_log_level, set_log_level
from main import export_headless, main
from point_file import write_points
from prerender import PrerenderPipeline, build_frame

STROKE = [(150.0, 100.0), (170.0, 110.0), (190.0, 130.0), (180.0, 150.0), (160.0, 155.0),
          (145.0, 140.0), (140.0, 120.0)]


def small_config():
    config = Config()
    config.canvas.width = 320
    config.canvas.height = 240
    config.canvas.x_chain_offset = 20
    config.canvas.y_chain_offset = 40
    config.prerender.batch_size = 3
    config.prerender.max_workers = 2
    config.export.fps = 10
    config.export.width = 160
    return config


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self._level = get_log_level()
        self.config_path = self.path("config.json")
        save_config(small_config(), self.config_path)
        self.points_path = self.path("stroke.txt")
        write_points(self.points_path, STROKE)

    def tearDown(self):
        set_log_level(self._level)
        self._tmp.cleanup()

    def path(self, name):
        return os.path.join(self._tmp.name, name)

    def test_export_writes_one_frame_per_point(self):
        out = self.path("out.gif")
        code = main(["--config", self.config_path, "--points", self.points_path, "--export", out])
        self.assertEqual(code, 0)
        frames = imageio.mimread(out)
        self.assertEqual(len(frames), len(STROKE))
        self.assertEqual(frames[0].shape[:2], (120, 160))

    def test_export_ignores_no_prerender(self):
        out = self.path("out.gif")
        code = main(["--config", self.config_path, "--points", self.points_path, "--no-prerender",
                     "--export", out])
        self.assertEqual(code, 0)
        self.assertEqual(len(imageio.mimread(out)), len(STROKE))

    def test_unreadable_points_file(self):
        bad = self.path("bad.txt")
        with open(bad, "w", encoding="utf-8") as f:
            f.write("1.0, 2.0\nnan, 3.0\n")
        out = self.path("out.gif")
        code = main(["--config", self.config_path, "--points", bad, "--export", out])
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(out))

    def test_missing_points_file(self):
        code = main(["--config", self.config_path, "--points", self.path("nope.txt"),
                     "--export", self.path("out.gif")])
        self.assertEqual(code, 1)

    def test_export_without_points(self):
        code = main(["--config", self.config_path, "--export", self.path("out.gif")])
        self.assertEqual(code, 2)

    def test_export_with_empty_points_file(self):
        empty = self.path("empty.txt")
        write_points(empty, [])
        code = main(["--config", self.config_path, "--points", empty, "--export", self.path("out.gif")])
        self.assertEqual(code, 2)

    def test_log_level_option(self):
        code = main(["--config", self.config_path, "--log-level", "ERROR", "--export", self.path("out.gif")])
        self.assertEqual(code, 2)
        self.assertEqual(get_log_level(), "ERROR")


class TestExportHeadless(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.out = os.path.join(self._tmp.name, "out.gif")

    def tearDown(self):
        self._tmp.cleanup()

    def test_failed_frame_raises(self):
        def builder(spectrum_x, spectrum_y, index, layout, path):
            if index == 4:
                raise ValueError("bad frame")
            return build_frame(spectrum_x, spectrum_y, index, layout, path)

        pipeline = PrerenderPipeline(3, 2, frame_builder=builder)
        with self.assertRaises(RuntimeError):
            export_headless(small_config(), STROKE, self.out, pipeline=pipeline)
        self.assertFalse(os.path.exists(self.out))

    def test_failed_export_returns_error_code(self):
        config_path = os.path.join(self._tmp.name, "config.json")
        points_path = os.path.join(self._tmp.name, "stroke.txt")
        save_config(small_config(), config_path)
        write_points(points_path, STROKE)
        out = os.path.join(self._tmp.name, "missing", "out.mp4")
        code = main(["--config", config_path, "--points", points_path, "--export", out])
        self.assertEqual(code, 3)


if __name__ == "__main__":
    unittest.main()
