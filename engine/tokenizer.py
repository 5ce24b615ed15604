# =============================================================================
# Japanese OCR - Tokenizer
# =============================================================================
# Thin wrapper around a Hugging Face fast tokenizer loaded from the bundle's
# tokenizer.json. Decoding drops special tokens (start, EOS, padding) and the
# spaces the WordPiece decoder puts between tokens, since Japanese has no
# word spacing.
# =============================================================================

import logging
from pathlib import Path
from typing import Sequence, Union

from transformers import PreTrainedTokenizerFast

from shared.errors import TokenizerError

logger = logging.getLogger(__name__)


def strip_spaces(text: str) -> str:
    return text.replace(" ", "")


class TextTokenizer:
    """Loaded once at startup and never mutated."""

    def __init__(self, tokenizer: PreTrainedTokenizerFast):
        self._tokenizer = tokenizer

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TextTokenizer":
        """
        Load a tokenizer.json vocabulary.

        Raises:
            TokenizerError: If the file is missing or cannot be parsed.
        """
        logger.info("Loading tokenizer: %s", path)
        if not Path(path).is_file():
            raise TokenizerError(f"Tokenizer file not found: {path}")
        try:
            tokenizer = PreTrainedTokenizerFast(tokenizer_file=str(path))
        except Exception as exc:
            raise TokenizerError(f"Failed to load tokenizer {path}: {exc}") from exc
        return cls(tokenizer)

    def decode(self, token_ids: Sequence[int]) -> str:
        """
        Turn token ids into text with special tokens and spaces removed.

        Args:
            token_ids: Full decoder output, start and EOS tokens included.

        Returns:
            The recognized text.

        Raises:
            TokenizerError: If the ids cannot be detokenized.
        """
        try:
            text = self._tokenizer.decode(list(token_ids), skip_special_tokens=True)
        except Exception as exc:
            raise TokenizerError(f"Failed to decode token ids: {exc}") from exc
        return strip_spaces(text)
