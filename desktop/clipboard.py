# =============================================================================
# Japanese OCR - Clipboard Watcher
# =============================================================================
# Provides the ClipboardWatcher class that polls the system clipboard and
# turns it into a stream of distinct new images. Polls are debounced by a
# configurable refresh interval; empty clipboards and unchanged content are
# filtered out by comparing a hash of the raw pixel bytes against the
# previously emitted image.
#
# Only the immediately preceding image is remembered, so A, B, A yields three
# emissions while A, A yields one.
# =============================================================================

import hashlib
import logging
import time
from typing import Callable, Iterator, Optional

import pyperclip
from PIL import Image, ImageGrab

from shared.errors import ImageError, OCRError, ResourceError

logger = logging.getLogger(__name__)


def image_hash(image: Image.Image) -> str:
    """
    Content hash over the raw pixel bytes of an image.

    Raises:
        ImageError: If a lazily decoded image turns out to be corrupt.
    """
    try:
        data = image.tobytes()
    except (OSError, Image.DecompressionBombError) as exc:
        raise ImageError(f"Cannot decode clipboard image: {exc}") from exc
    return hashlib.blake2b(data, digest_size=16).hexdigest()


class ClipboardReader:
    """
    Access to the platform clipboard.

    Images are read with Pillow's ImageGrab (needs xclip or wl-paste on
    Linux); text is written with pyperclip.
    """

    def read_image(self) -> Optional[Image.Image]:
        """
        Return the clipboard image, or None when the clipboard holds none.

        Raises:
            ResourceError: If the clipboard cannot be read at all.
            ImageError:    If the clipboard image cannot be decoded.
        """
        try:
            content = ImageGrab.grabclipboard()
        except (OSError, NotImplementedError) as exc:
            raise ResourceError(f"Cannot read clipboard: {exc}") from exc

        # Copied files come back as a list of paths; only pixel data counts
        if not isinstance(content, Image.Image):
            return None

        # Windows DIB data is decoded lazily
        try:
            content.load()
        except (OSError, Image.DecompressionBombError) as exc:
            raise ImageError(f"Cannot decode clipboard image: {exc}") from exc
        return content

    def write_text(self, text: str) -> None:
        """
        Replace the clipboard content with text.

        Raises:
            ResourceError: If the clipboard cannot be written.
        """
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            raise ResourceError(f"Cannot write clipboard: {exc}") from exc


class ClipboardWatcher:
    """
    Debounced change detector over clipboard images.

    State (last hash, first-poll flag) lives on the instance, so several
    watchers can coexist without interfering.

    Args:
        refresh_interval: Seconds to sleep before every poll but the first.
        reader:           Clipboard access; defaults to the system clipboard.
        sleep:            Blocking sleep function, injectable for tests.
    """

    def __init__(
        self,
        refresh_interval: float = 1.0,
        reader: Optional[ClipboardReader] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._refresh_interval = refresh_interval
        self._reader = reader or ClipboardReader()
        self._sleep = sleep
        self._last_hash: Optional[str] = None
        self._polled = False

    @property
    def last_hash(self) -> Optional[str]:
        return self._last_hash

    def prime(self) -> None:
        """
        Remember the image already on the clipboard without emitting it.

        Called once at startup so stale content copied before launch is not
        recognized. A clipboard that cannot be read leaves the watcher unprimed.
        """
        try:
            image = self._reader.read_image()
            if image is None:
                return
            self._last_hash = image_hash(image)
        except OCRError as exc:
            logger.warning("Could not prime clipboard watcher: %s", exc)
            return
        logger.debug("Primed with existing clipboard image %s", self._last_hash)

    def poll(self) -> Optional[Image.Image]:
        """
        Perform one poll.

        A clipboard that cannot be read, or holds an image that cannot be
        decoded, counts as empty for this poll.

        Returns:
            A new image if the clipboard holds one that differs from the last
            emitted image, otherwise None.
        """
        if self._polled:
            self._sleep(self._refresh_interval)
        self._polled = True

        try:
            image = self._reader.read_image()
            if image is None:
                return None
            new_hash = image_hash(image)
        except OCRError as exc:
            logger.warning("Error getting image from clipboard: %s", exc)
            return None

        if new_hash == self._last_hash:
            return None

        self._last_hash = new_hash
        logger.debug("New clipboard image %s (%dx%d)", new_hash, image.width, image.height)
        return image

    def images(self) -> Iterator[Image.Image]:
        """Yield new clipboard images forever, in poll order."""
        while True:
            image = self.poll()
            if image is not None:
                yield image

    def write_text(self, text: str) -> bool:
        """
        Best-effort write of recognized text back to the clipboard.

        Returns:
            True if the write succeeded. Failures are logged and ignored.
        """
        try:
            self._reader.write_text(text)
        except ResourceError as exc:
            logger.debug("Clipboard write-back failed: %s", exc)
            return False
        return True
