"""
Python client for the FNS name service (registry, resolver, reverse registrar).

  fns = await setup_fns(rpc_url='https://rpc.testnet.fantom.network')
  await fns.get_address('resolver.ftm')
"""
from typing import Optional

from fns.client import FNS, ContentRecord, get_labelhash, get_namehash, get_namehash_with_labelhash
from fns.config import settings
from fns.errors import (
  CollaboratorError,
  ContenthashError,
  FNSError,
  InvalidNameError,
  MalformedPayloadError,
  UnknownCoinKeyError,
  UnrecognizedEncodingError,
  UnsupportedNetworkError,
  UnsupportedSchemeError,
)
from fns.subdomains import SubdomainEntry
from fns.utils.contents import decode_contenthash, encode_contenthash, is_valid_contenthash
from fns.utils.labels import LabelStore
from fns.utils.namehash import labelhash, namehash, namehash_from_parent, validate_name
from fns.utils.preimage import PreimageClient
from fns.utils.signer import PendingTransaction, Signer
from fns.utils.web3_utils import DEFAULT_NETWORKS, EMPTY_ADDRESS, NetworkConfig, get_w3


async def setup_fns(
  rpc_url: Optional[str] = None,
  registry_address: Optional[str] = None,
  private_key: Optional[str] = None,
  networks: Optional[dict] = None,
  preimage_url: Optional[str] = None,
  labels_file: Optional[str] = None,
  read_only: bool = False,
) -> FNS:
  """
  Connect to an RPC endpoint and build an FNS client for its chain.

  Args:
    rpc_url: RPC endpoint (default settings.RPC_URL)
    registry_address: registry override (default: network table)
    private_key: signer key (default settings.PRIVATE_KEY); no key or
                 read_only=True gives a client without writes
    networks: chain id → NetworkConfig override
    preimage_url: label preimage service (default settings.PREIMAGE_URL)
    labels_file: JSON file for the local label dictionary

  Raises:
    CollaboratorError: if the chain id cannot be read
    UnsupportedNetworkError: unknown chain and no registry_address
  """
  w3 = get_w3(rpc_url or settings.RPC_URL)
  try:
    network_id = await w3.eth.chain_id
  except Exception as e:
    raise CollaboratorError(f'Could not read chain id: {e}') from e

  signer = None
  if not read_only and (private_key or settings.PRIVATE_KEY):
    signer = Signer(w3, private_key)

  return FNS(
    w3,
    network_id=network_id,
    registry_address=registry_address,
    networks=networks,
    signer=signer,
    decrypter=PreimageClient(preimage_url),
    labels=LabelStore(labels_file or settings.LABELS_FILE or None),
  )


__all__ = [
  'FNS',
  'CollaboratorError',
  'ContentRecord',
  'ContenthashError',
  'DEFAULT_NETWORKS',
  'EMPTY_ADDRESS',
  'FNSError',
  'InvalidNameError',
  'LabelStore',
  'MalformedPayloadError',
  'NetworkConfig',
  'PendingTransaction',
  'PreimageClient',
  'Signer',
  'SubdomainEntry',
  'UnknownCoinKeyError',
  'UnrecognizedEncodingError',
  'UnsupportedNetworkError',
  'UnsupportedSchemeError',
  'decode_contenthash',
  'encode_contenthash',
  'get_labelhash',
  'get_namehash',
  'get_namehash_with_labelhash',
  'is_valid_contenthash',
  'labelhash',
  'namehash',
  'namehash_from_parent',
  'setup_fns',
  'validate_name',
]
