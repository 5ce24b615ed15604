# =============================================================================
# Japanese OCR - Shared Package
# =============================================================================
# Error taxonomy and data contracts used by both the inference engine and the
# desktop client.
# =============================================================================
