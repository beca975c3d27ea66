"""
Utilities module - logging helpers.
"""

from sevenmote.utils.logger import logger, SevenmoteLogger

__all__ = ["logger", "SevenmoteLogger"]
