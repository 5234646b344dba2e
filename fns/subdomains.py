"""
Subdomain reconciliation.

The registry only records label hashes (NewOwner events), so listing the
subdomains of a name means turning those hashes back into labels:

1. Event label hashes arrive newest first. Reverse them to chronological
   order and keep the first occurrence of each hash (re-assigning an
   existing subdomain emits the same hash again).
2. Ask the preimage service for the whole batch at once, and the local
   label dictionary for each hash.
3. Prefer the decrypted label, then the local one. Unknown labels get an
   encoded-labelhash placeholder name so every entry stays addressable.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from fns.errors import InvalidNameError
from fns.utils.namehash import encode_labelhash

logger = logging.getLogger('fns')


@dataclass
class SubdomainEntry:
  label: Optional[str]
  labelhash: str
  decrypted: bool
  node: str
  name: str
  owner: Optional[str] = None


def uniq(label_hashes) -> list[bytes]:
  """Drop repeats, keeping the first occurrence of each hash."""
  seen = set()
  unique = []
  for label_hash in label_hashes:
    key = bytes(label_hash)
    if key not in seen:
      seen.add(key)
      unique.append(key)
  return unique


def merge_labels(remote_labels, local_labels) -> list[Optional[str]]:
  """Remote label where present, else local, else None."""
  return [remote or local or None for remote, local in zip(remote_labels, local_labels)]


def _verified(label, label_hash: bytes) -> Optional[str]:
  if not isinstance(label, str) or not label:
    return None
  if bytes(Web3.keccak(text=label)) != label_hash:
    logger.warning(f'Preimage mismatch for {Web3.to_hex(label_hash)}: {label!r}')
    return None
  return label


async def decrypt_labels(label_hashes: list[bytes], decrypter) -> list[Optional[str]]:
  """
  Decrypt a batch of label hashes with one call to `decrypter`.

  A failed call leaves every entry unknown; a missing or wrong answer
  leaves only that entry unknown.

  Args:
    label_hashes: 32-byte label hashes
    decrypter: object with `async decrypt(list[str]) -> list[str | None]`
               (PreimageClient), or None to skip remote decryption

  Returns:
    Verified label or None for each hash, in input order
  """
  if decrypter is None or not label_hashes:
    return [None] * len(label_hashes)
  try:
    answers = await decrypter.decrypt([Web3.to_hex(h) for h in label_hashes])
  except Exception as e:
    logger.warning(f'Label decryption failed for {len(label_hashes)} hashes: {e}')
    return [None] * len(label_hashes)

  answers = list(answers or [])
  answers += [None] * (len(label_hashes) - len(answers))
  return [_verified(label, h) for label, h in zip(answers, label_hashes)]


def reconcile_subdomains(
  label_hashes,
  parent_name: str,
  remote_labels,
  local_labels,
) -> list[SubdomainEntry]:
  """
  Build subdomain entries from already-deduplicated label hashes.

  Args:
    label_hashes: unique label hashes in chronological order (see uniq)
    parent_name: name the subdomains live under
    remote_labels: decrypted labels, parallel to label_hashes
    local_labels: dictionary labels, parallel to label_hashes

  Returns:
    SubdomainEntry per hash, same order, owner left unset
  """
  labels = merge_labels(remote_labels, local_labels)
  entries = []
  for label, label_hash in zip(labels, label_hashes):
    entries.append(SubdomainEntry(
      label=label,
      labelhash=Web3.to_hex(label_hash),
      decrypted=label is not None,
      node=parent_name,
      name=f'{label or encode_labelhash(label_hash)}.{parent_name}',
    ))
  return entries


def chronological_unique(newest_first) -> list[bytes]:
  """Reverse newest-first event label hashes and keep the earliest of each."""
  return uniq(reversed(list(newest_first)))


async def reconcile(newest_first, parent_name: str, decrypter=None, label_store=None) -> list[SubdomainEntry]:
  """
  Full reconciliation of NewOwner label hashes into subdomain entries.

  Args:
    newest_first: label hashes as read from event history, newest first
    parent_name: name the subdomains live under
    decrypter: remote preimage collaborator (PreimageClient) or None
    label_store: local LabelStore or None; decrypted labels are saved to it

  Returns:
    SubdomainEntry per distinct hash in chronological order, owner unset
  """
  label_hashes = chronological_unique(newest_first)
  remote_labels = await decrypt_labels(label_hashes, decrypter)
  if label_store is None:
    local_labels = [None] * len(label_hashes)
  else:
    local_labels = label_store.check_labels(label_hashes)
    for label in remote_labels:
      if label:
        try:
          label_store.save_label(label)
        except InvalidNameError:
          logger.debug(f'Not caching non-normalized label {label!r}')
  return reconcile_subdomains(label_hashes, parent_name, remote_labels, local_labels)
