import logging.config

from fns.config import settings


def configure_logging():
  """Apply settings.LOGGING. Opt-in: importing fns never touches logging."""
  logging.config.dictConfig(settings.LOGGING)
