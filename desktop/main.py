# =============================================================================
# Japanese OCR - Desktop Client Entry Point
# =============================================================================
# CLI entry point. Two modes:
#   file       recognize one image and exit (non-zero on failure)
#   clipboard  poll the clipboard forever, print each recognized string and
#              copy it back to the clipboard (default)
#
# Model and config load failures are fatal in both modes. In clipboard mode a
# failing frame is logged and the loop keeps running, since the tool is meant
# to run unattended.
# =============================================================================

import argparse
import logging
import sys
from typing import Optional

from PIL import Image, UnidentifiedImageError

from config import get_config
from desktop.clipboard import ClipboardWatcher
from engine.model import OCRModel
from shared.errors import ImageError, OCRError, ResourceError

logger = logging.getLogger(__name__)


def load_image(path: str) -> Image.Image:
    """
    Open and fully decode an image file.

    Raises:
        ImageError:    If the file is not a decodable image.
        ResourceError: If the file cannot be read.
    """
    try:
        with Image.open(path) as image:
            image.load()
            return image.copy()
    except UnidentifiedImageError as exc:
        raise ImageError(f"Cannot decode image {path}: {exc}") from exc
    except OSError as exc:
        raise ResourceError(f"Cannot read image {path}: {exc}") from exc


class ClipboardPipeline:
    """
    Orchestrator tying the clipboard watcher to the OCR model.

    Args:
        model:      Loaded OCR model.
        watcher:    Clipboard change detector.
        write_back: Copy recognized text back to the clipboard.
    """

    def __init__(self, model: OCRModel, watcher: ClipboardWatcher, write_back: bool = True):
        self._model = model
        self._watcher = watcher
        self._write_back = write_back

    def process_image(self, image: Image.Image) -> Optional[str]:
        """
        Recognize one clipboard image and publish the result.

        Returns:
            The recognized text, or None if recognition failed.
        """
        try:
            text = self._model.recognize(image)
        except OCRError as exc:
            logger.error("Recognition failed: %s", exc)
            return None

        print(text, flush=True)
        if self._write_back:
            self._watcher.write_text(text)
        return text

    def run(self) -> None:
        """Block forever, processing new clipboard images. Ctrl+C stops."""
        try:
            for image in self._watcher.images():
                self.process_image(image)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received. Shutting down...")


def run_file(model: OCRModel, path: str) -> int:
    """Recognize a single image file. Returns the process exit code."""
    try:
        text = model.recognize(load_image(path))
    except OCRError as exc:
        logger.error("Error: %s", exc)
        return 1
    print(text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="japanese-ocr",
        description="Japanese OCR: recognize text in an image file or the clipboard",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-m", "--model", type=str, default=None,
        help="Hugging Face repo id or local model directory (overrides config)",
    )
    parser.add_argument("-i", "--image", type=str, default=None, help="Image path for file mode")
    parser.add_argument(
        "--mode", choices=("file", "clipboard"), default="clipboard",
        help="Recognize one file or watch the clipboard",
    )
    parser.add_argument(
        "--refresh-timeout", type=float, default=None,
        help="Seconds between clipboard polls (overrides config)",
    )
    parser.add_argument(
        "--no-write-back", action="store_true",
        help="Do not copy recognized text back to the clipboard",
    )
    parser.add_argument(
        "--process-existing", action="store_true",
        help="Also recognize the image already on the clipboard at startup",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode == "file" and not args.image:
        parser.error("--image is required in file mode")

    config = get_config()
    if args.model is not None:
        config.model_name_or_path = args.model
    if args.refresh_timeout is not None:
        config.refresh_interval_seconds = args.refresh_timeout
    if args.no_write_back:
        config.write_back = False
    if args.process_existing:
        config.skip_existing_on_start = False
    if args.verbose:
        config.log_level = "DEBUG"

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("transformers").setLevel(logging.ERROR)

    logger.info("Initializing model: %s", config.model_name_or_path)
    try:
        model = OCRModel.from_name_or_path(
            config.model_name_or_path,
            cache_dir=config.cache_dir,
            num_threads=config.num_threads,
            optimization_level=config.graph_optimization_level,
        )
    except OCRError as exc:
        logger.error("Failed to load model: %s", exc)
        return 1

    if args.mode == "file":
        return run_file(model, args.image)

    watcher = ClipboardWatcher(refresh_interval=config.refresh_interval_seconds)
    if config.skip_existing_on_start:
        watcher.prime()

    print("\n" + "=" * 60)
    print("  Japanese OCR: clipboard mode")
    print("=" * 60)
    print(f"  Model      : {config.model_name_or_path}")
    print(f"  Interval   : {config.refresh_interval_seconds}s")
    print(f"  Write-back : {config.write_back}")
    print("=" * 60)
    print("Ready to do OCR. Copy an image, press Ctrl+C to stop.\n", flush=True)

    ClipboardPipeline(model, watcher, write_back=config.write_back).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
