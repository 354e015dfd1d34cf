import importlib.util
import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

import numpy as np

from detkit.postprocess import DetectPostConfig
from detkit.runtime import DetectionPipeline, LetterboxConfig

_SCRIPT = Path(__file__).resolve().parents[1] / "Scripts" / "detect_image.py"


def _load_cli():
    spec = importlib.util.spec_from_file_location("detect_image", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestDetectImageCli(unittest.TestCase):
    def setUp(self) -> None:
        self.cli = _load_cli()
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)

    def test_failure_writes_nothing(self) -> None:
        out = self.root / "boxes.jpg"
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            code = self.cli.main([str(self.root / "in.jpg"), "--config", str(self.root / "missing.json"), "--out", str(out)])
        self.assertEqual(code, 1)
        self.assertIn("error:", stderr.getvalue())
        self.assertFalse(out.exists())

    def test_invalid_threshold_reported(self) -> None:
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            code = self.cli.main(["in.jpg", "--conf", "1.5"])
        self.assertEqual(code, 1)
        self.assertIn("conf_threshold", stderr.getvalue())

    def test_success_writes_image(self) -> None:
        image_path = self.root / "in.png"
        self.cli.write_image(image_path, np.full((480, 640, 3), 255, dtype=np.uint8))
        out = self.root / "boxes.png"

        rows = np.array([[[100, 100, 50, 50, 0.9, 0.1, 0.8]]], dtype=np.float32)

        def fake_load_pipeline(config, **kwargs):
            return DetectionPipeline(
                lambda blob: [rows],
                class_names=("a", "b"),
                letterbox_cfg=LetterboxConfig(new_shape=(416, 416)),
                post_cfg=kwargs["post_cfg"],
            )

        stdout = io.StringIO()
        with mock.patch.object(self.cli, "load_pipeline", fake_load_pipeline), redirect_stdout(stdout):
            code = self.cli.main([str(image_path), "--out", str(out)])

        self.assertEqual(code, 0)
        self.assertIn("Num detections: 1", stdout.getvalue())
        written = self.cli.read_image(out)
        self.assertEqual(written.shape, (416, 416, 3))
        self.assertTrue(np.array_equal(written[75, 100], [0, 0, 0]))

    def test_coords_flag_maps_to_post_config(self) -> None:
        seen = {}

        def fake_load_pipeline(config, **kwargs):
            seen.update(kwargs)
            raise FileNotFoundError("stop here")

        with mock.patch.object(self.cli, "load_pipeline", fake_load_pipeline), redirect_stderr(io.StringIO()):
            self.cli.main(["in.jpg", "--coords", "original", "--per-class-nms", "--iou", "0.3"])

        post_cfg = seen["post_cfg"]
        self.assertIsInstance(post_cfg, DetectPostConfig)
        self.assertEqual(post_cfg.coordinate_space, "original")
        self.assertFalse(post_cfg.class_agnostic_nms)
        self.assertEqual(post_cfg.iou_threshold, 0.3)


if __name__ == "__main__":
    unittest.main()
