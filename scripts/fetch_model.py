# =============================================================================
# Japanese OCR - Model Bundle Fetch Script
# =============================================================================
# One-time utility that downloads the ONNX model bundle from the Hugging Face
# Hub into a plain local directory, so the tool can run offline with
# ``--model <dir>``. Validates the generation config after download.
#
# Usage (from the repository root):
#   python -m scripts.fetch_model [repo_id] [output_dir]
#
# Output (graphs may land under an onnx/ subdirectory, depending on the export):
#   models/encoder_model.onnx      vision encoder graph
#   models/decoder_model.onnx      text decoder graph
#   models/tokenizer.json          tokenizer vocabulary
#   models/generation_config.json  decoding policy
# =============================================================================

import os
import sys
import time
from typing import Optional

from huggingface_hub import snapshot_download

from config import DEFAULT_MODEL
from engine.hub import BUNDLE_FILES, ModelBundle
from shared.errors import ModelError
from shared.schemas import GenerationConfig


def _existing_bundle(output_dir: str) -> Optional[ModelBundle]:
    try:
        return ModelBundle.from_directory(output_dir)
    except ModelError:
        return None


def fetch_model(model_id: str = DEFAULT_MODEL, output_dir: str = "models") -> None:
    """
    Download the OCR model bundle into ``output_dir``.

    Args:
        model_id:   Hugging Face repo id of the ONNX export.
        output_dir: Directory to place the artifacts in.
    """
    os.makedirs(output_dir, exist_ok=True)

    # Skip download if a complete bundle is already there, nested or not
    bundle = _existing_bundle(output_dir)
    if bundle is not None:
        print(f"Model files already exist in {output_dir}/. Skipping download.")
        return

    print(f"Downloading {model_id} into {output_dir}/ ...")
    t0 = time.time()
    snapshot_download(
        repo_id=model_id,
        local_dir=output_dir,
        allow_patterns=[f"*{name}" for name in BUNDLE_FILES] + ["*.onnx_data"],
    )
    print(f"Downloaded in {time.time() - t0:.1f}s")

    bundle = ModelBundle.from_directory(output_dir)
    for path in (bundle.encoder_path, bundle.decoder_path, bundle.tokenizer_path):
        print(f"  {path}: {os.path.getsize(path) / 1024 / 1024:.1f} MB")

    gen_config = GenerationConfig.from_file(bundle.generation_config_path)
    print(
        f"Generation config OK: start={gen_config.decoder_start_token_id} "
        f"eos={gen_config.eos_token_id} max_length={gen_config.max_length}"
    )


if __name__ == "__main__":
    fetch_model(*sys.argv[1:3])
