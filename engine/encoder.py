# =============================================================================
# Japanese OCR - Vision Encoder
# =============================================================================
# Provides the VisionEncoder class that owns the encoder graph, feeds it the
# preprocessed pixel tensor and returns the hidden states that condition every
# decoder step.
# =============================================================================

import logging
import threading
from typing import Optional

import numpy as np
from PIL import Image

from engine.backend import InferenceBackend
from engine.preprocess import ImagePreprocessor
from shared.errors import ModelError

logger = logging.getLogger(__name__)

PIXEL_VALUES_INPUT = "pixel_values"
HIDDEN_STATE_OUTPUT = "last_hidden_state"


class VisionEncoder:
    """
    ViT encoder stage of the OCR model.

    Only one encode call runs against the backend at a time.

    Args:
        backend:      Loaded encoder graph.
        preprocessor: Image transform; defaults to the training preprocessing.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        preprocessor: Optional[ImagePreprocessor] = None,
    ):
        self._backend = backend
        self._preprocessor = preprocessor or ImagePreprocessor()
        self._lock = threading.Lock()

    def encode(self, image: Image.Image) -> np.ndarray:
        """
        Preprocess an image and encode it into hidden states.

        Args:
            image: A PIL image of any resolution.

        Returns:
            Read-only numpy array of shape (1, N, hidden_dim).
        """
        with self._lock:
            pixel_values = self._preprocessor(image)
            outputs = self._backend.run({PIXEL_VALUES_INPUT: pixel_values})

        hidden_states = outputs.get(HIDDEN_STATE_OUTPUT)
        if hidden_states is None:
            raise ModelError(
                f"Encoder produced no '{HIDDEN_STATE_OUTPUT}' output "
                f"(got {sorted(outputs)})"
            )

        # Reused by every decoder step, so freeze it
        hidden_states = np.array(hidden_states, dtype=np.float32, copy=True)
        hidden_states.setflags(write=False)

        logger.debug("Encoded pixels %s → hidden states %s", pixel_values.shape, hidden_states.shape)
        return hidden_states
