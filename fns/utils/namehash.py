"""
Name normalization and hashing.

Names are normalized per label with UTS-46 (std3 rules, non-transitional),
so 'Vitalik.ONE' and 'vitalik.one' hash identically. Labels that are
already an encoded label hash ('[<64 hex>]') are passed through and hash
to the label hash they carry.

  namehash('')       = 0x0000...0000
  namehash('one')    = keccak256(namehash('') + keccak256('one'))
  namehash('a.one')  = keccak256(namehash('one') + keccak256('a'))
"""
from functools import lru_cache

import idna
from web3 import Web3

from fns.errors import InvalidNameError

ROOT_NODE = b'\x00' * 32


# ─────────────────────────────────────────────────────────────────────────────
# Encoded label hashes
# ─────────────────────────────────────────────────────────────────────────────

def is_encoded_labelhash(label: str) -> bool:
  """True for '[<64 hex chars>]' placeholders."""
  if len(label) != 66 or not (label.startswith('[') and label.endswith(']')):
    return False
  try:
    bytes.fromhex(label[1:-1])
  except ValueError:
    return False
  return True


def encode_labelhash(label_hash) -> str:
  """Wrap a label hash (bytes or 0x hex) as '[<hex>]'."""
  return f'[{Web3.to_hex(_to_bytes32(label_hash))[2:]}]'


def decode_labelhash(label: str) -> bytes:
  """Inverse of encode_labelhash."""
  if not is_encoded_labelhash(label):
    raise InvalidNameError(
      f'Expected encoded labelhash of the form [<64 hex chars>], got {label!r}'
    )
  return bytes.fromhex(label[1:-1])


# ─────────────────────────────────────────────────────────────────────────────
# Normalization
# ─────────────────────────────────────────────────────────────────────────────

def _illegal_char(label: str) -> str:
  for char in label:
    try:
      idna.uts46_remap(char, std3_rules=True, transitional=False)
    except idna.IDNAError:
      return char
  return label


def normalize_label(label: str) -> str:
  """
  Normalize a single label.

  Raises:
    InvalidNameError: 'Illegal char <c>' for the first disallowed character
  """
  if is_encoded_labelhash(label):
    return label.lower()
  try:
    return idna.uts46_remap(label, std3_rules=True, transitional=False)
  except idna.IDNAError as e:
    raise InvalidNameError(f'Illegal char {_illegal_char(label)}') from e


def validate_name(name: str) -> str:
  """
  Normalize a dotted name, label by label.

  The empty string is the root and is returned unchanged.

  Raises:
    InvalidNameError: on empty labels or disallowed characters
  """
  if name == '':
    return name
  labels = name.split('.')
  if any(not label for label in labels):
    raise InvalidNameError('Domain cannot have empty labels')
  return '.'.join(normalize_label(label) for label in labels)


normalize = validate_name


# ─────────────────────────────────────────────────────────────────────────────
# Hashing
# ─────────────────────────────────────────────────────────────────────────────

def _to_bytes32(value) -> bytes:
  if isinstance(value, str):
    value = bytes.fromhex(value[2:] if value.startswith('0x') else value)
  value = bytes(value)
  if len(value) != 32:
    raise ValueError(f'Expected 32 bytes, got {len(value)}')
  return value


def labelhash(label: str) -> bytes:
  """keccak256 of the normalized label (or the carried hash if encoded)."""
  label = normalize_label(label)
  if is_encoded_labelhash(label):
    return decode_labelhash(label)
  return bytes(Web3.keccak(text=label))


def namehash_from_parent(parent_node, label_hash) -> bytes:
  """
  Node of a child, given its parent's node and its own label hash.

  Equivalent to namehash('<label>.<parent>') without re-hashing the parent
  path. Both arguments accept bytes or 0x-prefixed hex.
  """
  return bytes(Web3.keccak(_to_bytes32(parent_node) + _to_bytes32(label_hash)))


@lru_cache(maxsize=1024)
def _namehash(normalized: str) -> bytes:
  node = ROOT_NODE
  if not normalized:
    return node
  for label in reversed(normalized.split('.')):
    if is_encoded_labelhash(label):
      label_hash = decode_labelhash(label)
    else:
      label_hash = bytes(Web3.keccak(text=label))
    node = bytes(Web3.keccak(node + label_hash))
  return node


def namehash(name: str) -> bytes:
  """
  Compute the 32-byte node identifier of a dotted name.

  Args:
    name: Dotted name, any case (e.g. 'Sub.Vitalik.one')

  Returns:
    32-byte node identifier

  Raises:
    InvalidNameError: if any label fails normalization
  """
  return _namehash(validate_name(name))


def split_name(name: str) -> tuple[str, str]:
  """Split 'label.parent.tld' into ('label', 'parent.tld')."""
  label, _, parent = name.partition('.')
  return label, parent


def reverse_name(address: str) -> str:
  """Reverse-registrar name for an address: '<hex>.addr.reverse'."""
  hex_address = address[2:] if address.startswith('0x') else address
  return f'{hex_address.lower()}.addr.reverse'
