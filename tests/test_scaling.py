import unittest

from yolov5_kit.scaling import rescale_detection, rescale_detections, scale_ratio
from yolov5_kit.types import Detection


class TestScaling(unittest.TestCase):
    def test_ratio(self) -> None:
        self.assertEqual(scale_ratio((640, 480), (320, 240)), (2.0, 2.0))
        self.assertEqual(scale_ratio((320, 480), (640, 240)), (0.5, 2.0))

    def test_left_doubles(self) -> None:
        det = Detection(left=10, top=5, right=30, bottom=25, score=0.8, class_id=2)
        out = rescale_detection(det, scale_ratio((640, 480), (320, 480)))
        self.assertEqual(out.left, 20)
        self.assertEqual(out.right, 60)
        self.assertEqual(out.top, 5)
        self.assertEqual(out.bottom, 25)
        self.assertEqual(out.score, 0.8)
        self.assertEqual(out.class_id, 2)

    def test_original_not_modified(self) -> None:
        det = Detection(left=10, top=10, right=20, bottom=20, score=0.5, class_id=0)
        rescale_detection(det, (3.0, 3.0))
        self.assertEqual(det.as_xyxy(), (10, 10, 20, 20))

    def test_list_helper(self) -> None:
        dets = [
            Detection(left=1, top=2, right=3, bottom=4, score=0.9, class_id=0),
            Detection(left=5, top=6, right=7, bottom=8, score=0.7, class_id=1),
        ]
        out = rescale_detections(dets, (2.0, 0.5))
        self.assertEqual([d.as_xyxy() for d in out], [(2, 1, 6, 2), (10, 3, 14, 4)])
        self.assertEqual(rescale_detections([], (2.0, 2.0)), [])

    def test_non_positive_sizes_rejected(self) -> None:
        with self.assertRaises(ValueError):
            scale_ratio((0, 480), (320, 240))
        with self.assertRaises(ValueError):
            scale_ratio((640, 480), (320, -1))


if __name__ == "__main__":
    unittest.main()
