"""
Core layer shared by the server and tooling: configuration of logging and
monitoring, domain exceptions and the database package.
"""

from ngurra_pathways.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
