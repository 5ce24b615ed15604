# =============================================================================
# Japanese OCR - Inference Backend
# =============================================================================
# Defines the narrow capability the encoder and decoder depend on:
# "run named inputs through a graph, return named outputs". OnnxBackend wraps
# an onnxruntime InferenceSession behind it; tests substitute fakes that
# return canned arrays.
# =============================================================================

import logging
from pathlib import Path
from typing import Dict, Protocol, Union

import numpy as np
import onnxruntime as ort

from shared.errors import InferenceError, ModelError

logger = logging.getLogger(__name__)

NamedArrays = Dict[str, np.ndarray]

# Mapping from config string to onnxruntime optimization level
_OPTIMIZATION_LEVELS = {
    "disable": ort.GraphOptimizationLevel.ORT_DISABLE_ALL,
    "basic": ort.GraphOptimizationLevel.ORT_ENABLE_BASIC,
    "extended": ort.GraphOptimizationLevel.ORT_ENABLE_EXTENDED,
    "all": ort.GraphOptimizationLevel.ORT_ENABLE_ALL,
}


class InferenceBackend(Protocol):
    """One loaded computation graph. Not safe for concurrent calls."""

    def run(self, inputs: NamedArrays) -> NamedArrays:
        ...


class OnnxBackend:
    """
    CPU onnxruntime session for a single ONNX graph.

    Args:
        model_path:         Path to the ``.onnx`` file.
        num_threads:        Intra-op thread count (0 = onnxruntime default).
        optimization_level: One of "disable", "basic", "extended", "all".

    Raises:
        ModelError: If the graph cannot be loaded or the level is unknown.
    """

    def __init__(
        self,
        model_path: Union[str, Path],
        num_threads: int = 0,
        optimization_level: str = "all",
    ):
        level = _OPTIMIZATION_LEVELS.get(optimization_level)
        if level is None:
            raise ModelError(
                f"Unsupported graph optimization level '{optimization_level}'. "
                f"Supported: {list(_OPTIMIZATION_LEVELS.keys())}"
            )

        options = ort.SessionOptions()
        options.graph_optimization_level = level
        options.log_severity_level = 3  # errors only
        if num_threads > 0:
            options.intra_op_num_threads = num_threads

        logger.info("Loading ONNX graph: %s", model_path)
        try:
            self._session = ort.InferenceSession(
                str(model_path),
                sess_options=options,
                providers=["CPUExecutionProvider"],
            )
        except Exception as exc:
            raise ModelError(f"Failed to load ONNX graph {model_path}: {exc}") from exc

        self._output_names = [o.name for o in self._session.get_outputs()]
        logger.debug(
            "Graph %s: inputs=%s outputs=%s",
            Path(model_path).name,
            [i.name for i in self._session.get_inputs()],
            self._output_names,
        )

    def run(self, inputs: NamedArrays) -> NamedArrays:
        """
        Execute the graph synchronously.

        Args:
            inputs: Mapping of graph input name to numpy array.

        Returns:
            Mapping of every graph output name to its numpy array.

        Raises:
            InferenceError: If onnxruntime fails during execution.
        """
        try:
            outputs = self._session.run(None, inputs)
        except Exception as exc:
            raise InferenceError(f"ONNX Runtime execution failed: {exc}") from exc
        return dict(zip(self._output_names, outputs))
