import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

from repsync.config import DetectorConfig
from repsync.detector import mediapipe_provider
from repsync.detector.backends import ComputeBackend
from repsync.detector.lifecycle import BackendUnavailable, ModelLoadFailure
from repsync.vision.landmarks import Landmark


def fake_mediapipe() -> mock.MagicMock:
    mp = mock.MagicMock()
    mp.tasks.BaseOptions.Delegate.GPU = "GPU"
    mp.tasks.BaseOptions.Delegate.CPU = "CPU"
    mp.tasks.vision.RunningMode.IMAGE = "IMAGE"
    return mp


class FakeNumpy:
    uint8 = "uint8"

    def ascontiguousarray(self, data, dtype):
        return ("contiguous", data, dtype)


class MediaPipeCollaboratorTests(unittest.IsolatedAsyncioTestCase):
    def model_file(self) -> Path:
        with tempfile.NamedTemporaryFile(suffix=".task", delete=False) as fh:
            fh.write(b"model-bytes")
            return Path(fh.name)

    async def test_preparer_reports_missing_runtime_as_backend_unavailable(self) -> None:
        preparer = mediapipe_provider.MediaPipeBackendPreparer()
        with mock.patch.object(
            mediapipe_provider, "_require_mediapipe", side_effect=ImportError("no mediapipe")
        ):
            with self.assertRaises(BackendUnavailable) as ctx:
                await preparer.prepare(ComputeBackend.GPU)
        self.assertIn("no mediapipe", str(ctx.exception))

    async def test_preparer_accepts_available_delegate(self) -> None:
        preparer = mediapipe_provider.MediaPipeBackendPreparer()
        with mock.patch.object(mediapipe_provider, "_require_mediapipe", return_value=fake_mediapipe()):
            await preparer.prepare(ComputeBackend.CPU)

    async def test_factory_fails_when_model_asset_is_missing(self) -> None:
        factory = mediapipe_provider.MediaPipeModelFactory()
        config = DetectorConfig(model_path=Path("does/not/exist.task"))

        with self.assertRaises(ModelLoadFailure) as ctx:
            await factory.load(config, ComputeBackend.CPU)

        self.assertIn("does/not/exist.task", str(ctx.exception))

    async def test_factory_builds_single_person_landmarker(self) -> None:
        mp = fake_mediapipe()
        config = DetectorConfig(model_path=self.model_file())
        factory = mediapipe_provider.MediaPipeModelFactory()

        with mock.patch.object(mediapipe_provider, "_require_mediapipe", return_value=mp):
            model = await factory.load(config, ComputeBackend.GPU)

        base_kwargs = mp.tasks.BaseOptions.call_args.kwargs
        self.assertEqual(base_kwargs["model_asset_path"], str(config.model_path))
        self.assertEqual(base_kwargs["delegate"], "GPU")
        option_kwargs = mp.tasks.vision.PoseLandmarkerOptions.call_args.kwargs
        self.assertEqual(option_kwargs["num_poses"], 1)
        self.assertEqual(option_kwargs["running_mode"], "IMAGE")
        self.assertIsInstance(model, mediapipe_provider.MediaPipePoseModel)

    async def test_factory_wraps_landmarker_errors(self) -> None:
        mp = fake_mediapipe()
        mp.tasks.vision.PoseLandmarker.create_from_options.side_effect = RuntimeError("bad flatbuffer")
        factory = mediapipe_provider.MediaPipeModelFactory()

        with mock.patch.object(mediapipe_provider, "_require_mediapipe", return_value=mp):
            with self.assertRaises(ModelLoadFailure) as ctx:
                await factory.load(DetectorConfig(model_path=self.model_file()), ComputeBackend.CPU)

        self.assertIn("bad flatbuffer", str(ctx.exception))


class MediaPipePoseModelTests(unittest.TestCase):
    def test_detect_converts_first_pose_to_landmarks(self) -> None:
        mp = fake_mediapipe()
        landmarker = mock.Mock()
        landmarker.detect.return_value = SimpleNamespace(
            pose_landmarks=[
                [
                    SimpleNamespace(x=0.5, y=0.25, z=-0.1, visibility=0.9),
                    SimpleNamespace(x=0.4, y=0.3, z=None, visibility=None),
                ]
            ]
        )
        model = mediapipe_provider.MediaPipePoseModel(landmarker, mp)

        with mock.patch.object(mediapipe_provider, "_require_numpy", return_value=FakeNumpy()):
            frame = model.detect("rgb-image")

        self.assertEqual(
            frame,
            [Landmark(x=0.5, y=0.25, z=-0.1, visibility=0.9), Landmark(x=0.4, y=0.3)],
        )
        image_kwargs = mp.Image.call_args.kwargs
        self.assertEqual(image_kwargs["data"], ("contiguous", "rgb-image", "uint8"))

    def test_detect_without_person_returns_none(self) -> None:
        landmarker = mock.Mock()
        landmarker.detect.return_value = SimpleNamespace(pose_landmarks=[])
        model = mediapipe_provider.MediaPipePoseModel(landmarker, fake_mediapipe())

        with mock.patch.object(mediapipe_provider, "_require_numpy", return_value=FakeNumpy()):
            self.assertIsNone(model.detect("rgb-image"))

    def test_close_releases_landmarker(self) -> None:
        landmarker = mock.Mock()
        mediapipe_provider.MediaPipePoseModel(landmarker, fake_mediapipe()).close()
        landmarker.close.assert_called_once_with()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
