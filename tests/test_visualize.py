import tempfile
import unittest
from pathlib import Path

import numpy as np

from detkit.errors import InvalidInput
from detkit.image_io import read_image, write_image
from detkit.types import Detection, Rect
from detkit.visualize import render_detections


class TestRenderDetections(unittest.TestCase):
    def test_draws_on_copy(self) -> None:
        img = np.full((100, 100, 3), 200, dtype=np.uint8)
        det = Detection(box=Rect(10, 20, 30, 40), score=0.9, class_index=0, anchor_index=3)
        out = render_detections(img, [det])

        self.assertTrue(np.array_equal(out[20, 25], [0, 0, 0]))  # top edge
        self.assertTrue(np.array_equal(out[40, 10], [0, 0, 0]))  # left edge
        self.assertTrue(np.array_equal(out[40, 25], [200, 200, 200]))  # inside
        self.assertTrue(np.all(img == 200))

    def test_box_outside_canvas_is_clipped_by_opencv(self) -> None:
        img = np.full((50, 50, 3), 200, dtype=np.uint8)
        det = Detection(box=Rect(-10, -10, 30, 30), score=0.9, class_index=0, anchor_index=0)
        out = render_detections(img, [det])
        self.assertTrue(np.array_equal(out[19, 5], [0, 0, 0]))  # bottom edge at y = -10 + 30 - 1

    def test_labels(self) -> None:
        img = np.full((100, 100, 3), 200, dtype=np.uint8)
        det = Detection(box=Rect(10, 40, 30, 30), score=0.5, class_index=1, anchor_index=0)
        plain = render_detections(img, [det])
        labelled = render_detections(img, [det], class_names=("cat", "dog"), show_labels=True)
        self.assertFalse(np.array_equal(plain, labelled))

    def test_no_detections_returns_copy(self) -> None:
        img = np.full((20, 20, 3), 9, dtype=np.uint8)
        out = render_detections(img, [])
        self.assertTrue(np.array_equal(out, img))
        self.assertIsNot(out, img)

    def test_rejects_non_image(self) -> None:
        with self.assertRaises(InvalidInput):
            render_detections(None, [])  # type: ignore[arg-type]


class TestImageIO(unittest.TestCase):
    def test_write_then_read(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "out" / "boxes.png"

        img = np.zeros((12, 16, 3), dtype=np.uint8)
        img[3, 4] = (1, 2, 3)
        written = write_image(path, img)
        self.assertTrue(written.exists())
        self.assertTrue(np.array_equal(read_image(written), img))

    def test_read_missing(self) -> None:
        with self.assertRaises(InvalidInput):
            read_image(Path(tempfile.gettempdir()) / "nope" / "missing.jpg")


if __name__ == "__main__":
    unittest.main()
