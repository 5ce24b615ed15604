# =============================================================================
# Japanese OCR - Error Taxonomy
# =============================================================================
# Every failure the tool reports derives from OCRError so the desktop client
# can apply one policy: fatal in file mode and at startup, logged and skipped
# per frame in clipboard mode. Library exceptions are wrapped with
# ``raise ... from exc`` so the underlying traceback is kept.
# =============================================================================


class OCRError(Exception):
    """Base class for all recognition failures."""


class ResourceError(OCRError):
    """A file, clipboard or model hub could not be accessed."""


class ImageError(OCRError):
    """An image could not be decoded or has an unsupported format."""


class ModelError(OCRError):
    """A model artifact is missing, malformed or incompatible."""


class InferenceError(OCRError):
    """The inference backend failed while executing a graph."""


class TokenizerError(OCRError):
    """The tokenizer vocabulary could not be loaded or ids not decoded."""


class ConfigError(OCRError):
    """The generation configuration is missing fields or malformed."""
