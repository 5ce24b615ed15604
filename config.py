# =============================================================================
# Japanese OCR - Centralized Configuration
# =============================================================================
# Provides a single Config dataclass containing all tunable parameters for
# the OCR engine and the desktop client. Parameters are overridable via
# environment variables with the JOCR_ prefix (e.g.,
# JOCR_REFRESH_INTERVAL_SECONDS=0.5).
# =============================================================================

import os
from dataclasses import dataclass
from typing import Optional

# Hugging Face repository holding the ONNX export of the manga OCR model
DEFAULT_MODEL = "l0wgear/manga-ocr-2025-onnx"


def _parse_bool(value: str) -> bool:
    """
    Interpret an environment string as a boolean flag.

    Args:
        value: Raw environment value ("1", "true", "no", ...).

    Returns:
        True for the usual truthy spellings, False otherwise.
    """
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_optional_str(value: str) -> Optional[str]:
    return value or None


@dataclass
class Config:
    """
    Centralized configuration for the Japanese OCR tool.

    All fields can be overridden via environment variables prefixed with JOCR_.
    """

    # -- Model bundle --
    model_name_or_path: str = DEFAULT_MODEL
    cache_dir: Optional[str] = None

    # -- Clipboard polling --
    refresh_interval_seconds: float = 1.0
    write_back: bool = True
    skip_existing_on_start: bool = True

    # -- ONNX Runtime --
    num_threads: int = 0  # 0 = let onnxruntime decide
    graph_optimization_level: str = "all"

    # -- Logging --
    log_level: str = "INFO"

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """
        Override config fields from environment variables.

        Looks for JOCR_<FIELD_NAME_UPPERCASE> environment variables and
        applies them with appropriate type conversion.
        """
        field_types = {
            "model_name_or_path": str,
            "cache_dir": _parse_optional_str,
            "refresh_interval_seconds": float,
            "write_back": _parse_bool,
            "skip_existing_on_start": _parse_bool,
            "num_threads": int,
            "graph_optimization_level": str,
            "log_level": str,
        }
        for field_name, field_type in field_types.items():
            env_key = f"JOCR_{field_name.upper()}"
            env_value = os.environ.get(env_key)
            if env_value is not None:
                setattr(self, field_name, field_type(env_value))


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Return the singleton Config instance, creating it on first call.

    Returns:
        Config: The global configuration object.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached Config so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
