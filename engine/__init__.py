# =============================================================================
# Japanese OCR - Inference Engine Package
# =============================================================================
# This package contains the recognition pipeline: image preprocessing, the
# vision encoder, the greedy autoregressive decoder, tokenizer handling and
# model bundle resolution. Everything here is synchronous and single-threaded.
# =============================================================================
