from __future__ import annotations

# Toolchain
COMPILE_TIMEOUT_SECONDS = 60 * 60.0
STRIP_TIMEOUT_SECONDS = 5 * 60.0
INSTALLER_TIMEOUT_SECONDS = 30 * 60.0

# GitHub CLI
GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Idempotent GH retry policy
GH_RETRY_ATTEMPTS = 3
GH_RETRY_DELAY_SECONDS = 2.0
