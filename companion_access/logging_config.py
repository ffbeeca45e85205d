"""
Centralized logging configuration.
"""

import logging
import sys
from typing import Any, Optional


def setup_logging(config: Optional[dict[str, Any]] = None) -> None:
    """
    Configure the root logger once for the process.

    Args:
        config: config dict; only "log_level" is read (default INFO)
    """
    config = config or {}
    level = str(config.get("log_level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                        handlers=[logging.StreamHandler(sys.stdout)])


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
