"""
Preimage service client.

Recovers plaintext labels for label hashes observed on-chain. The service
takes a JSON list of 0x label hashes and answers with a parallel list of
labels, null where the preimage is unknown.

Requests are blocking urllib calls run in a worker thread so the event
loop keeps serving other coroutines.
"""
import asyncio
import json
import logging
import urllib.error
import urllib.request
from typing import Optional

from fns.config import settings
from fns.errors import CollaboratorError

logger = logging.getLogger('fns')


class PreimageClient:
  """Batch label decryption against an HTTP preimage service."""

  def __init__(self, url: Optional[str] = None, timeout: Optional[int] = None):
    self.url = url or settings.PREIMAGE_URL
    self.timeout = timeout or settings.PREIMAGE_TIMEOUT

  def _request(self, label_hashes: list[str]) -> list:
    data = json.dumps(label_hashes).encode('utf-8')
    req = urllib.request.Request(
      self.url,
      data=data,
      headers={'Content-Type': 'application/json'},
      method='POST',
    )
    try:
      with urllib.request.urlopen(req, timeout=self.timeout) as resp:
        result = json.loads(resp.read().decode('utf-8'))
    except urllib.error.HTTPError as e:
      error_body = e.read().decode('utf-8', errors='replace')
      logger.warning(f'Preimage service error: {e.code} {error_body}')
      raise CollaboratorError(f'Preimage service returned {e.code}') from e
    except urllib.error.URLError as e:
      logger.warning(f'Preimage service not reachable: {e.reason}')
      raise CollaboratorError(f'Preimage service connection failed: {e.reason}') from e
    except (TimeoutError, ValueError) as e:
      raise CollaboratorError(f'Preimage service bad response: {e}') from e

    if not isinstance(result, list):
      raise CollaboratorError(f'Preimage service returned {type(result).__name__}, expected list')
    return result

  async def decrypt(self, label_hashes: list[str]) -> list[Optional[str]]:
    """
    Look up plaintext labels for a batch of label hashes.

    Args:
      label_hashes: 0x-prefixed label hashes

    Returns:
      Labels (or None) in input order. Answers are not verified here.

    Raises:
      CollaboratorError: if the service is unreachable or malformed
    """
    if not label_hashes:
      return []
    return await asyncio.to_thread(self._request, list(label_hashes))
