import pytest
from PIL import Image

from config import get_config
from desktop import main as main_module
from desktop.clipboard import ClipboardWatcher
from desktop.main import ClipboardPipeline, load_image, run_file
from fakes import FakeReader, SleepRecorder, solid_image, truncated_png
from shared.errors import ConfigError, ImageError, InferenceError, ResourceError


class _StubModel:
    def __init__(self, results):
        self.results = list(results)
        self.seen = []

    def recognize(self, image):
        self.seen.append(image)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _png(tmp_path, name="line.png"):
    path = tmp_path / name
    Image.new("RGB", (40, 12), (255, 255, 255)).save(path)
    return path


def test_load_image_decodes_file(tmp_path):
    image = load_image(str(_png(tmp_path)))
    assert image.size == (40, 12)


def test_load_image_errors(tmp_path):
    garbage = tmp_path / "garbage.png"
    garbage.write_bytes(b"definitely not a png")

    with pytest.raises(ImageError):
        load_image(str(garbage))
    with pytest.raises(ResourceError):
        load_image(str(tmp_path / "missing.png"))


def test_run_file_prints_text(tmp_path, capsys):
    assert run_file(_StubModel(["悪魔との戦い"]), str(_png(tmp_path))) == 0
    assert capsys.readouterr().out == "悪魔との戦い\n"


def test_run_file_fails_on_undecodable_image(tmp_path, capsys):
    garbage = tmp_path / "garbage.png"
    garbage.write_bytes(b"\x00\x01")
    model = _StubModel([])

    assert run_file(model, str(garbage)) == 1
    assert model.seen == []
    assert capsys.readouterr().out == ""


def test_run_file_fails_on_inference_error(tmp_path):
    assert run_file(_StubModel([InferenceError("boom")]), str(_png(tmp_path))) == 1


def test_pipeline_keeps_going_after_a_bad_frame(capsys):
    reader = FakeReader()
    watcher = ClipboardWatcher(reader=reader, sleep=SleepRecorder())
    pipeline = ClipboardPipeline(_StubModel([InferenceError("boom"), "戦い"]), watcher)

    assert pipeline.process_image(solid_image((1, 1, 1))) is None
    assert pipeline.process_image(solid_image((2, 2, 2))) == "戦い"
    assert capsys.readouterr().out == "戦い\n"
    assert reader.written == ["戦い"]


def test_pipeline_write_back_can_be_disabled():
    reader = FakeReader()
    watcher = ClipboardWatcher(reader=reader, sleep=SleepRecorder())
    pipeline = ClipboardPipeline(_StubModel(["x"]), watcher, write_back=False)

    pipeline.process_image(solid_image((1, 1, 1)))
    assert reader.written == []


def test_pipeline_ignores_write_back_failure(capsys):
    watcher = ClipboardWatcher(reader=FakeReader(fail_writes=True), sleep=SleepRecorder())
    pipeline = ClipboardPipeline(_StubModel(["x"]), watcher)

    assert pipeline.process_image(solid_image((1, 1, 1))) == "x"
    assert capsys.readouterr().out == "x\n"


def test_pipeline_run_stops_on_keyboard_interrupt(capsys):
    def _interrupt(_seconds):
        raise KeyboardInterrupt

    reader = FakeReader([solid_image((9, 9, 9))])
    watcher = ClipboardWatcher(reader=reader, sleep=_interrupt)

    ClipboardPipeline(_StubModel(["一"]), watcher).run()

    assert capsys.readouterr().out == "一\n"


def test_pipeline_run_survives_corrupt_clipboard_image(capsys):
    sleeps = []

    def _interrupt_on_second_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 2:
            raise KeyboardInterrupt

    good = solid_image((9, 9, 9))
    reader = FakeReader([truncated_png(), good])
    watcher = ClipboardWatcher(reader=reader, sleep=_interrupt_on_second_sleep)
    model = _StubModel(["二"])

    ClipboardPipeline(model, watcher).run()

    assert model.seen == [good]
    assert capsys.readouterr().out == "二\n"


def test_file_mode_requires_image():
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--mode", "file"])
    assert excinfo.value.code == 2


def test_model_load_failure_is_fatal(monkeypatch):
    def _fail(*args, **kwargs):
        raise ConfigError("missing eos_token_id")

    monkeypatch.setattr(main_module.OCRModel, "from_name_or_path", _fail)
    assert main_module.main(["--mode", "file", "--image", "x.png"]) == 1
    assert main_module.main(["--mode", "clipboard"]) == 1


def test_cli_flags_override_config(tmp_path, monkeypatch, capsys):
    loaded = {}

    def _load(name_or_path, **kwargs):
        loaded["name"] = name_or_path
        loaded.update(kwargs)
        return _StubModel(["字"])

    monkeypatch.setattr(main_module.OCRModel, "from_name_or_path", _load)
    code = main_module.main([
        "--mode", "file", "--image", str(_png(tmp_path)),
        "--model", "/models/ocr", "--refresh-timeout", "0.3", "--no-write-back",
    ])

    assert code == 0
    assert loaded["name"] == "/models/ocr"
    config = get_config()
    assert config.refresh_interval_seconds == 0.3
    assert config.write_back is False
    assert capsys.readouterr().out == "字\n"
