import os
from pathlib import Path

import pytest
from PIL import Image

from engine.decoder import GreedyDecoder
from engine.encoder import VisionEncoder
from engine.model import OCRModel
from fakes import EOS, FakeEncoderBackend, FakeTokenizer, ScriptedDecoderBackend, make_gen_config
from shared.errors import InferenceError

FIXTURE_IMAGE = Path(__file__).resolve().parent / "fixtures" / "test.png"

VOCAB = {4: "悪", 5: "魔", 6: "と", 7: "の", 8: "戦", 9: "い"}


def _model(script, tokenizer=None, **decoder_kwargs):
    encoder_backend = FakeEncoderBackend()
    decoder_backend = ScriptedDecoderBackend(script, **decoder_kwargs)
    model = OCRModel(
        VisionEncoder(encoder_backend),
        GreedyDecoder(decoder_backend, make_gen_config()),
        tokenizer or FakeTokenizer(VOCAB),
    )
    return model, encoder_backend, decoder_backend


def test_recognize_runs_the_full_pipeline():
    tokenizer = FakeTokenizer(VOCAB)
    model, encoder_backend, decoder_backend = _model([4, 5, 6, 7, 8, 9, EOS], tokenizer)

    text = model.recognize(Image.new("RGB", (120, 40), (255, 255, 255)))

    assert text == "悪魔との戦い"
    assert len(encoder_backend.calls) == 1
    assert len(decoder_backend.calls) == 7
    assert decoder_backend.calls[0]["encoder_hidden_states"].shape == (1, 4, 8)
    assert tokenizer.decoded == [[2, 4, 5, 6, 7, 8, 9, EOS]]


def test_model_is_callable():
    model, _, _ = _model([8, 9, EOS])
    assert model(Image.new("L", (10, 10))) == "戦い"


def test_decoder_failure_never_reaches_tokenizer():
    tokenizer = FakeTokenizer(VOCAB)
    model, _, _ = _model([4, 5, EOS], tokenizer, fail_at_step=1)

    with pytest.raises(InferenceError):
        model.recognize(Image.new("RGB", (10, 10)))
    assert tokenizer.decoded == []


# tests/fixtures/test.png is not committed; supply a crop of the line
# 「悪魔との戦い」 there and set JOCR_HF_TESTS=1 to run this test.
@pytest.mark.skipif(
    os.environ.get("JOCR_HF_TESTS") != "1" or not FIXTURE_IMAGE.exists(),
    reason=(
        "opt-in: set JOCR_HF_TESTS=1 (downloads the model) and supply the "
        "reference image tests/fixtures/test.png showing 悪魔との戦い"
    ),
)
def test_recognize_reference_image_with_real_model():
    from config import DEFAULT_MODEL

    model = OCRModel.from_name_or_path(DEFAULT_MODEL)
    with Image.open(FIXTURE_IMAGE) as image:
        assert model.recognize(image) == "悪魔との戦い"
