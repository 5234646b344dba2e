"""
Local label dictionary.

Label hashes seen on-chain can only be shown as names when the plaintext
label is known. LabelStore remembers every label this client has hashed
or decrypted, keyed by 0x-prefixed label hash, optionally backed by a JSON
file so the dictionary survives restarts.
"""
import json
import logging
from pathlib import Path
from typing import Optional

from web3 import Web3

from fns.utils.namehash import is_encoded_labelhash, labelhash, normalize_label

logger = logging.getLogger('fns')


def _key(label_hash) -> str:
  if isinstance(label_hash, str):
    return label_hash.lower() if label_hash.startswith('0x') else '0x' + label_hash.lower()
  return Web3.to_hex(label_hash)


class LabelStore:
  """label hash → label, in memory or persisted to `path`."""

  def __init__(self, path: Optional[str] = None):
    self.path = Path(path) if path else None
    self._labels = {}
    if self.path and self.path.exists():
      self._labels = json.loads(self.path.read_text())
      logger.debug(f'Loaded {len(self._labels)} labels from {self.path}')

  def _flush(self):
    if self.path:
      self.path.write_text(json.dumps(self._labels, indent=2, sort_keys=True))

  def save_label(self, label: str) -> str:
    """Remember a single label. Returns its 0x label hash."""
    label = normalize_label(label)
    key = _key(labelhash(label))
    if not is_encoded_labelhash(label) and self._labels.get(key) != label:
      self._labels[key] = label
      self._flush()
    return key

  def save_name(self, name: str):
    """Remember every label of a dotted name."""
    for label in name.split('.'):
      if label:
        self.save_label(label)

  def get(self, label_hash) -> Optional[str]:
    return self._labels.get(_key(label_hash))

  def check_labels(self, label_hashes) -> list[Optional[str]]:
    """Known label (or None) for each hash, in input order."""
    return [self.get(h) for h in label_hashes]

  def __len__(self):
    return len(self._labels)
