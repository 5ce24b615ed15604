# =============================================================================
# Japanese OCR - Greedy Autoregressive Decoder
# =============================================================================
# Provides the GreedyDecoder class that turns encoder hidden states into a
# token id sequence. Each step re-runs the full decoder graph on the growing
# sequence (no KV cache), takes the argmax of the logits at the last position
# and appends it.
#
# Termination, checked after every step, first match wins:
#   1. the chosen token is EOS
#   2. max_length steps have been taken
#   3. the last no_repeat_ngram_size tokens are all EOS
#
# Rule 3 is a narrow repeated-EOS guard carried over from the exported
# generation config, not a general n-gram repetition blocker.
# =============================================================================

import logging
import threading
from typing import List

import numpy as np

from engine.backend import InferenceBackend
from shared.errors import ModelError
from shared.schemas import GenerationConfig

logger = logging.getLogger(__name__)

INPUT_IDS_INPUT = "input_ids"
HIDDEN_STATES_INPUT = "encoder_hidden_states"
LOGITS_OUTPUT = "logits"


def last_token_argmax(logits: np.ndarray) -> int:
    """
    Pick the highest scoring vocabulary id at the last sequence position.

    Args:
        logits: Array shaped (1, seq_len, vocab_size).

    Returns:
        The greedy next token id.

    Raises:
        ModelError: If the logits are not rank 3.
    """
    if logits.ndim != 3:
        raise ModelError(f"Expected logits with 3 dimensions, got shape {logits.shape}")
    return int(np.argmax(logits[0, -1, :]))


class GreedyDecoder:
    """
    Greedy decoder stage of the OCR model.

    Beam search settings in the generation config are ignored; decoding
    always keeps a single hypothesis.

    Args:
        backend:    Loaded decoder graph.
        gen_config: Decoding policy (start/EOS tokens, length cap, EOS guard).
    """

    def __init__(self, backend: InferenceBackend, gen_config: GenerationConfig):
        self._backend = backend
        self._gen_config = gen_config
        self._max_length = gen_config.max_length
        self._lock = threading.Lock()

    def _stop_decoding(self, tokens: List[int]) -> bool:
        """True when the trailing no_repeat_ngram_size tokens are all EOS."""
        window = self._gen_config.no_repeat_ngram_size
        if window <= 0 or len(tokens) < window:
            return False
        eos = self._gen_config.eos_token_id
        return all(token == eos for token in tokens[-window:])

    def decode(self, hidden_states: np.ndarray) -> List[int]:
        """
        Generate a token sequence for one image.

        The returned sequence starts with ``decoder_start_token_id`` and, if
        generation stopped on EOS, ends with ``eos_token_id``. Its length is
        at most ``max_length + 1``.

        Args:
            hidden_states: Encoder output of shape (1, N, hidden_dim).
                           Read only; shared by every step.

        Returns:
            The full list of token ids.

        Raises:
            InferenceError: If the backend fails on any step. No partial
                            sequence is returned.
            ModelError:     If the graph does not produce usable logits.
        """
        eos = self._gen_config.eos_token_id
        tokens = [self._gen_config.decoder_start_token_id]
        step = 0

        with self._lock:
            while True:
                input_ids = np.asarray([tokens], dtype=np.int64)  # (1, len)
                outputs = self._backend.run({
                    INPUT_IDS_INPUT: input_ids,
                    HIDDEN_STATES_INPUT: hidden_states,
                })

                logits = outputs.get(LOGITS_OUTPUT)
                if logits is None:
                    raise ModelError(
                        f"Decoder produced no '{LOGITS_OUTPUT}' output (got {sorted(outputs)})"
                    )

                next_token = last_token_argmax(np.asarray(logits))
                tokens.append(next_token)
                step += 1

                if next_token == eos:
                    logger.debug("EOS after %d steps", step)
                    break
                if step >= self._max_length:
                    logger.debug("Hit max_length=%d", self._max_length)
                    break
                if self._stop_decoding(tokens):
                    logger.debug("Repeated EOS guard after %d steps", step)
                    break

        logger.debug("Decoded %d tokens: %s", len(tokens), tokens)
        return tokens
