# =============================================================================
# Japanese OCR - Model Bundle Resolution
# =============================================================================
# Locates the four artifacts the engine needs (encoder graph, decoder graph,
# tokenizer vocabulary, generation config) either in a local directory or in
# a Hugging Face Hub repository, downloading into the shared HF cache on
# first use.
# =============================================================================

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from huggingface_hub import snapshot_download
from huggingface_hub.utils import HfHubHTTPError

from shared.errors import ModelError, ResourceError

logger = logging.getLogger(__name__)

ENCODER_FILE = "encoder_model.onnx"
DECODER_FILE = "decoder_model.onnx"
TOKENIZER_FILE = "tokenizer.json"
GENERATION_CONFIG_FILE = "generation_config.json"

BUNDLE_FILES = (ENCODER_FILE, DECODER_FILE, TOKENIZER_FILE, GENERATION_CONFIG_FILE)


def _find(root: Path, filename: str) -> Optional[Path]:
    if (root / filename).is_file():
        return root / filename
    # Exports sometimes nest graphs under onnx/
    for candidate in sorted(root.rglob(filename)):
        if candidate.is_file():
            return candidate
    return None


@dataclass(frozen=True)
class ModelBundle:
    """
    Paths of the artifacts making up one OCR model.

    Attributes:
        encoder_path:           Vision encoder ONNX graph.
        decoder_path:           Text decoder ONNX graph.
        tokenizer_path:         tokenizer.json vocabulary.
        generation_config_path: generation_config.json decoding policy.
    """

    encoder_path: Path
    decoder_path: Path
    tokenizer_path: Path
    generation_config_path: Path

    @classmethod
    def from_directory(cls, directory) -> "ModelBundle":
        """
        Collect the bundle artifacts from a directory tree.

        Raises:
            ModelError: If any of the four artifacts is missing.
        """
        root = Path(directory)
        found = {name: _find(root, name) for name in BUNDLE_FILES}
        missing = [name for name, path in found.items() if path is None]
        if missing:
            raise ModelError(
                f"Model bundle at {root} is missing: {', '.join(missing)}"
            )

        return cls(
            encoder_path=found[ENCODER_FILE],
            decoder_path=found[DECODER_FILE],
            tokenizer_path=found[TOKENIZER_FILE],
            generation_config_path=found[GENERATION_CONFIG_FILE],
        )


def resolve_bundle(name_or_path: str, cache_dir: Optional[str] = None) -> ModelBundle:
    """
    Resolve a local directory or Hub repo id into a ModelBundle.

    Args:
        name_or_path: Existing directory, or a Hub repo id such as
                      "l0wgear/manga-ocr-2025-onnx".
        cache_dir:    Optional override of the Hugging Face cache location.

    Returns:
        The located ModelBundle.

    Raises:
        ResourceError: If the repo cannot be downloaded.
        ModelError:    If the artifacts are incomplete.
    """
    local = Path(name_or_path).expanduser()
    if local.is_dir():
        logger.info("Using local model bundle: %s", local)
        return ModelBundle.from_directory(local)

    logger.info("Fetching model bundle from the Hugging Face Hub: %s", name_or_path)
    try:
        snapshot_dir = snapshot_download(
            repo_id=name_or_path,
            cache_dir=cache_dir,
            # Large graphs keep their weights in a side-car *.onnx_data file
            allow_patterns=[f"*{name}" for name in BUNDLE_FILES] + ["*.onnx_data"],
        )
    except (HfHubHTTPError, OSError, ValueError) as exc:
        raise ResourceError(f"Failed to download model '{name_or_path}': {exc}") from exc

    logger.debug("Model snapshot at %s", snapshot_dir)
    return ModelBundle.from_directory(snapshot_dir)
