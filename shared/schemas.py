# =============================================================================
# Japanese OCR - Shared Data Contracts
# =============================================================================
# Pydantic models describing the documents shipped inside the model bundle.
# The generation config is the decoding policy exported alongside the ONNX
# graphs; every field is required so an incompatible bundle is rejected at
# startup instead of producing a half-configured decoder.
# =============================================================================

import json
import logging
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.errors import ConfigError

logger = logging.getLogger(__name__)


class GenerationConfig(BaseModel):
    """
    Decoding policy loaded from ``generation_config.json``.

    Only the start/end tokens, the length cap and the repeated-EOS window
    are honored by the greedy decoder. The beam search fields are part of
    the exported document and validated, but never used.

    Attributes:
        decoder_start_token_id: First token of every decoded sequence.
        eos_token_id:           Token marking end of sequence.
        no_repeat_ngram_size:   Window size of the repeated-EOS guard.
        max_length:             Hard cap on the number of decode steps.
        num_beams:              Beam width (not honored).
        length_penalty:         Beam length penalty (not honored).
        pad_token_id:           Padding token (not honored).
        early_stopping:         Beam early stopping flag (not honored).
        transformers_version:   Version of the exporter that wrote the file.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    decoder_start_token_id: int = Field(..., ge=0)
    eos_token_id: int = Field(..., ge=0)
    no_repeat_ngram_size: int = Field(..., ge=0)
    max_length: int = Field(..., gt=0)
    num_beams: int
    length_penalty: float
    pad_token_id: int
    early_stopping: bool
    transformers_version: str

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GenerationConfig":
        """
        Load and validate a generation config document.

        Args:
            path: Location of ``generation_config.json``.

        Returns:
            The validated, immutable GenerationConfig.

        Raises:
            ConfigError: If the file cannot be read, is not JSON, or any
                         required field is missing or has the wrong type.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except OSError as exc:
            raise ConfigError(f"Cannot read generation config {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Generation config {path} is not valid JSON: {exc}") from exc

        try:
            config = cls.model_validate(document)
        except ValidationError as exc:
            raise ConfigError(f"Invalid generation config {path}: {exc}") from exc

        logger.debug("Loaded generation config: %s", config)
        return config
