# =============================================================================
# Japanese OCR - Recognition Pipeline
# =============================================================================
# Provides the OCRModel class that wires the stages together:
#   image → ImagePreprocessor → VisionEncoder → GreedyDecoder → TextTokenizer
# and the factory that builds it from a local or Hub model bundle.
# =============================================================================

import logging
import time
from typing import Optional

from PIL import Image

from engine.backend import OnnxBackend
from engine.decoder import GreedyDecoder
from engine.encoder import VisionEncoder
from engine.hub import ModelBundle, resolve_bundle
from engine.tokenizer import TextTokenizer
from shared.schemas import GenerationConfig

logger = logging.getLogger(__name__)


class OCRModel:
    """
    End-to-end Japanese text recognizer for a single image.

    Args:
        encoder:   Vision encoder stage.
        decoder:   Greedy decoder stage.
        tokenizer: Tokenizer used to turn ids back into text.
    """

    def __init__(
        self,
        encoder: VisionEncoder,
        decoder: GreedyDecoder,
        tokenizer: TextTokenizer,
    ):
        self._encoder = encoder
        self._decoder = decoder
        self._tokenizer = tokenizer

    @classmethod
    def from_bundle(
        cls,
        bundle: ModelBundle,
        num_threads: int = 0,
        optimization_level: str = "all",
    ) -> "OCRModel":
        """
        Load every artifact of a bundle.

        The generation config is validated before any graph is loaded, so a
        bad config never yields a partially initialized decoder.

        Raises:
            ConfigError, TokenizerError, ModelError: On the first artifact
            that fails to load.
        """
        gen_config = GenerationConfig.from_file(bundle.generation_config_path)
        tokenizer = TextTokenizer.from_file(bundle.tokenizer_path)

        encoder = VisionEncoder(
            OnnxBackend(bundle.encoder_path, num_threads, optimization_level)
        )
        decoder = GreedyDecoder(
            OnnxBackend(bundle.decoder_path, num_threads, optimization_level),
            gen_config,
        )
        logger.info(
            "OCR model ready (start=%d, eos=%d, max_length=%d)",
            gen_config.decoder_start_token_id,
            gen_config.eos_token_id,
            gen_config.max_length,
        )
        return cls(encoder, decoder, tokenizer)

    @classmethod
    def from_name_or_path(
        cls,
        name_or_path: str,
        cache_dir: Optional[str] = None,
        num_threads: int = 0,
        optimization_level: str = "all",
    ) -> "OCRModel":
        """Resolve a Hub repo id or local directory and load it."""
        bundle = resolve_bundle(name_or_path, cache_dir=cache_dir)
        return cls.from_bundle(bundle, num_threads, optimization_level)

    def recognize(self, image: Image.Image) -> str:
        """
        Recognize the Japanese text in an image.

        Args:
            image: A PIL image of any resolution and mode.

        Returns:
            The recognized text with inter-token spaces removed.

        Raises:
            InferenceError, ModelError, TokenizerError: If any stage fails.
        """
        start = time.perf_counter()

        hidden_states = self._encoder.encode(image)
        token_ids = self._decoder.decode(hidden_states)
        text = self._tokenizer.decode(token_ids)

        logger.debug(
            "Recognized %d tokens in %.1fms: %s",
            len(token_ids), (time.perf_counter() - start) * 1000.0, text,
        )
        return text

    __call__ = recognize
