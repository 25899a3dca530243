"""Process-wide logging setup for the form builder API."""

import logging
import sys


def configure_logging(level: int | str = "INFO") -> logging.Logger:
	"""Send all records to stdout with a single handler.

	Args:
		level: Logging level as int or name (e.g. ``logging.INFO`` or ``"INFO"``).

	Returns:
		The ``formbuilder`` package logger.
	"""
	handler = logging.StreamHandler(sys.stdout)
	handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
	logging.basicConfig(level=level, handlers=[handler], force=True)
	return logging.getLogger("formbuilder")
