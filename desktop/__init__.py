# =============================================================================
# Japanese OCR - Desktop Client Package
# =============================================================================
# This package contains the user-facing side: the clipboard watcher that turns
# clipboard changes into new-image events, and the CLI that drives the OCR
# engine in file or clipboard mode.
# =============================================================================
