"""
Logging setup.
"""

from __future__ import annotations

import logging
import os
import warnings

from models.errors import SchemaMismatch


def setup_logging(log_path: str, log_level: str) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )

    # Parsers log schema mismatches themselves; keep the warning from printing twice.
    warnings.simplefilter("ignore", SchemaMismatch)
