"""
Settings for the FNS client.

Values come from the environment (or a .env file) and are only used as
defaults: every FNS constructor argument overrides its setting.
"""
import os

from dotenv import load_dotenv

load_dotenv()


# ---------------- Chain --------------------------------------------------- #

RPC_URL = os.getenv('FNS_RPC_URL', '')

# Registry override; empty means "use the network table"
REGISTRY_ADDRESS = os.getenv('FNS_REGISTRY_ADDRESS', '')


# ---------------- Signer -------------------------------------------------- #

PRIVATE_KEY = os.getenv('FNS_PRIVATE_KEY', '')

# Fixed gas limit for every write (no estimation)
TX_GAS = int(os.getenv('FNS_TX_GAS', '300000'))


# ---------------- Labels -------------------------------------------------- #

PREIMAGE_URL = os.getenv(
  'FNS_PREIMAGE_URL',
  'https://preimagedb.appspot.com/keccak256/query',
)
PREIMAGE_TIMEOUT = int(os.getenv('FNS_PREIMAGE_TIMEOUT', '10'))

# JSON file backing the local label dictionary; empty keeps it in memory
LABELS_FILE = os.getenv('FNS_LABELS_FILE', '')


# ---------------- Logging ------------------------------------------------- #

LOG_LEVEL = os.getenv('FNS_LOG_LEVEL', 'INFO')

LOGGING = {
  'version': 1,
  'disable_existing_loggers': False,
  'formatters': {
    'fns': {
      'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
    },
  },
  'handlers': {
    'fns_console': {
      'class': 'logging.StreamHandler',
      'formatter': 'fns',
    },
  },
  'loggers': {
    'fns': {
      'handlers': ['fns_console'],
      'level': LOG_LEVEL,
      'propagate': False,
    },
  },
}
