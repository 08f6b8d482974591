import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import cv2
import numpy as np

from yolov5_kit import cli
from yolov5_kit.errors import ModelLoadError
from yolov5_kit.runtime import YoloPipeline


def _fake_infer(blob: np.ndarray) -> np.ndarray:
    rows = np.array([[40, 40, 20, 20, 0.9, 0.2, 0.9]], dtype=np.float32)
    return np.repeat(rows[None, ...], blob.shape[0], axis=0)


class TestCliArguments(unittest.TestCase):
    def _parse_fails(self, argv) -> int:
        with contextlib.redirect_stderr(io.StringIO()) as err:
            with self.assertRaises(SystemExit) as ctx:
                cli.main(argv)
        self.assertIn("usage", err.getvalue())
        return ctx.exception.code

    def test_all_four_required(self) -> None:
        full = ["--model", "m.pt", "--width", "320", "--height", "320", "--image", "x.jpg"]
        for i in range(0, len(full), 2):
            argv = full[:i] + full[i + 2 :]
            self.assertNotEqual(self._parse_fails(argv), 0)

    def test_width_must_be_positive(self) -> None:
        self.assertNotEqual(
            self._parse_fails(["-m", "m.pt", "-W", "0", "-H", "320", "-i", "x.jpg"]),
            0,
        )

    def test_short_options(self) -> None:
        args = cli.build_parser().parse_args(["-m", "m.pt", "-W", "640", "-H", "384", "-i", "x.jpg"])
        self.assertEqual((args.model, args.width, args.height, args.image), ("m.pt", 640, 384, "x.jpg"))


class TestCliRun(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.tmp = Path(tmpdir.name)
        self.image = self.tmp / "img.png"
        cv2.imwrite(str(self.image), np.zeros((160, 160, 3), dtype=np.uint8))
        self.output = self.tmp / "det.jpg"

    def _argv(self, *extra):
        return [
            "-m", str(self.tmp / "model.pt"),
            "-W", "80",
            "-H", "80",
            "-i", str(self.image),
            "--output", str(self.output),
            *extra,
        ]

    def _run(self, argv, load_pipeline):
        with mock.patch.object(cli, "load_pipeline", load_pipeline):
            with contextlib.redirect_stdout(io.StringIO()) as out, contextlib.redirect_stderr(io.StringIO()) as err:
                code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_detects_and_writes_output(self) -> None:
        calls = {}

        def fake_load(model_path, input_size, **kwargs):
            calls["input_size"] = input_size
            calls["post_cfg"] = kwargs["post_cfg"]
            return YoloPipeline(_fake_infer, input_size, post_cfg=kwargs["post_cfg"])

        names = self.tmp / "coco.names"
        names.write_text("person\nbicycle\n", encoding="utf-8")
        code, out, _ = self._run(self._argv("--names", str(names), "--score-thresh", "0.5"), fake_load)

        self.assertEqual(code, 0)
        self.assertEqual(calls["input_size"], (80, 80))
        self.assertEqual(calls["post_cfg"].score_threshold, 0.5)
        self.assertIn("Got detections: 1", out)
        # 160px image from an 80px model input -> coordinates doubled
        self.assertIn("60.0\t60.0\t100.0\t100.0", out)
        self.assertIn("bicycle", out)
        self.assertTrue(self.output.exists())

    def test_no_detections_skips_output(self) -> None:
        def fake_load(model_path, input_size, **kwargs):
            return YoloPipeline(lambda b: np.zeros((b.shape[0], 3, 7), dtype=np.float32), input_size)

        code, out, _ = self._run(self._argv(), fake_load)
        self.assertEqual(code, 0)
        self.assertIn("Got detections: 0", out)
        self.assertFalse(self.output.exists())

    def test_config_file_used_and_overridden(self) -> None:
        cfg_path = self.tmp / "detect.json"
        cfg_path.write_text(json.dumps({"score_threshold": 0.3, "iou_threshold": 0.6, "max_detections": 5}), encoding="utf-8")
        calls = {}

        def fake_load(model_path, input_size, **kwargs):
            calls["post_cfg"] = kwargs["post_cfg"]
            return YoloPipeline(_fake_infer, input_size, post_cfg=kwargs["post_cfg"])

        code, _, _ = self._run(self._argv("--config", str(cfg_path), "--iou-thresh", "0.7"), fake_load)
        self.assertEqual(code, 0)
        self.assertEqual(calls["post_cfg"].score_threshold, 0.3)
        self.assertEqual(calls["post_cfg"].iou_threshold, 0.7)
        self.assertEqual(calls["post_cfg"].max_detections, 5)

    def test_model_load_failure(self) -> None:
        def fake_load(model_path, input_size, **kwargs):
            raise ModelLoadError(f"Model file not found: {model_path}")

        code, _, err = self._run(self._argv(), fake_load)
        self.assertEqual(code, 1)
        self.assertIn("Model file not found", err)

    def test_unreadable_image(self) -> None:
        def fake_load(model_path, input_size, **kwargs):
            return YoloPipeline(_fake_infer, input_size)

        argv = self._argv()
        argv[argv.index("-i") + 1] = str(self.tmp / "missing.jpg")
        code, _, err = self._run(argv, fake_load)
        self.assertEqual(code, 1)
        self.assertIn("Could not read image", err)

    def test_malformed_model_output(self) -> None:
        def fake_load(model_path, input_size, **kwargs):
            return YoloPipeline(lambda b: np.zeros((b.shape[0], 3, 5), dtype=np.float32), input_size)

        code, out, err = self._run(self._argv(), fake_load)
        self.assertEqual(code, 1)
        self.assertIn("unexpected model output", err)
        self.assertNotIn("Got detections", out)
        self.assertFalse(self.output.exists())


if __name__ == "__main__":
    unittest.main()
