# =============================================================================
# Logging Setup
# =============================================================================
#
# Modules log through `logging.getLogger(__name__)`. The embedding
# application calls setup_logging() once at startup; library use without
# it falls back to whatever the host process configured.
# =============================================================================

from __future__ import annotations

import logging

from docqa.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger from `settings.log_level` (or `level`)."""
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format=_FORMAT,
    )
    # SDK clients are chatty at INFO (every HTTP request is logged)
    for noisy in ("httpx", "httpcore", "anthropic", "openai", "chromadb"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
