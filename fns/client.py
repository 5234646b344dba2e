"""
FNS client: registry, resolver and reverse-registrar operations by name.

Every method hashes its name argument before touching the chain. Reads
that go through a resolver degrade to a fixed sentinel when the resolver
is missing or misbehaves; registry reads and all writes propagate
CollaboratorError.

Degraded read sentinels:
  addresses         EMPTY_ADDRESS
  text records      ''
  content           ContentRecord('error', <message>)
  reverse name      {'name': None}
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from fns.config import settings
from fns.contracts import Registry, Resolver, ReverseRegistrar
from fns.errors import CollaboratorError, UnsupportedNetworkError
from fns.subdomains import reconcile
from fns.utils.coins import CoinRegistry
from fns.utils.contents import decode_contenthash, encode_contenthash, is_empty_contenthash
from fns.utils.labels import LabelStore
from fns.utils.namehash import (
  labelhash,
  namehash,
  namehash_from_parent,
  reverse_name,
  split_name,
)
from fns.utils.web3_utils import (
  CONTENTHASH_INTERFACE_ID,
  DEFAULT_NETWORKS,
  EMPTY_ADDRESS,
  NetworkConfig,
  is_empty_address,
)

logger = logging.getLogger('fns')

CONTENTHASH = 'contenthash'
OLD_CONTENT = 'oldcontent'
ERROR = 'error'

RESOLVER_ERROR = (
  'Error getting {record} on the resolver contract, '
  'are you sure the resolver address is a resolver contract?'
)


@dataclass
class ContentRecord:
  content_type: str
  value: object


# ─────────────────────────────────────────────────────────────────────────────
# Utils
# ─────────────────────────────────────────────────────────────────────────────

def get_namehash(name: str) -> str:
  """0x-prefixed namehash of a dotted name."""
  return Web3.to_hex(namehash(name))


def get_labelhash(label: str) -> str:
  """0x-prefixed label hash."""
  return Web3.to_hex(labelhash(label))


def get_namehash_with_labelhash(label_hash, node_hash) -> str:
  """0x-prefixed node of a child from its label hash and parent node."""
  return Web3.to_hex(namehash_from_parent(node_hash, label_hash))


class FNS:
  """
  Name-service client bound to one registry.

  Args:
    w3: AsyncWeb3 instance
    network_id: chain id, used to pick the registry from `networks`
    registry_address: explicit registry, overrides the network table
    networks: chain id → NetworkConfig (default DEFAULT_NETWORKS)
    signer: Signer for writes (None for a read-only client)
    decrypter: label preimage collaborator (PreimageClient) or None
    labels: local LabelStore (default: in memory or settings.LABELS_FILE)
    coins: CoinRegistry for multi-coin addresses
  """

  def __init__(
    self,
    w3,
    network_id: Optional[int] = None,
    registry_address: Optional[str] = None,
    networks: Optional[dict] = None,
    signer=None,
    decrypter=None,
    labels: Optional[LabelStore] = None,
    coins: Optional[CoinRegistry] = None,
  ):
    self.networks = dict(DEFAULT_NETWORKS if networks is None else networks)
    registry_address = registry_address or settings.REGISTRY_ADDRESS
    network = self.networks.get(network_id)

    if network is None and not registry_address:
      raise UnsupportedNetworkError(f'Unsupported network {network_id}')
    if network is None:
      network = NetworkConfig(name=str(network_id), registry=registry_address)

    self.w3 = w3
    self.network_id = network_id
    self.network = network
    self.registry_address = registry_address or network.registry
    self.signer = signer
    self.decrypter = decrypter
    self.labels = labels if labels is not None else LabelStore(settings.LABELS_FILE or None)
    self.coins = coins or CoinRegistry()
    self.registry = self._make_registry()

  # Contract factories; tests swap these for in-memory fakes.

  def _make_registry(self):
    return Registry(self.w3, self.registry_address, self.signer)

  def _make_resolver(self, address: str):
    return Resolver(self.w3, address, self.signer)

  def _make_reverse_registrar(self, address: str):
    return ReverseRegistrar(self.w3, address, self.signer)

  def get_registry_contract(self):
    """The underlying Registry wrapper."""
    return self.registry

  def _require_signer(self):
    if self.signer is None:
      raise CollaboratorError('No signer configured for write operations')
    return self.signer

  # ───────────────────────────────────────────────────────────────────────────
  # Registry reads
  # ───────────────────────────────────────────────────────────────────────────

  async def get_owner(self, name: str) -> str:
    return await self.registry.owner(namehash(name))

  async def get_resolver(self, name: str) -> str:
    return await self.registry.resolver(namehash(name))

  async def get_ttl(self, name: str) -> int:
    return await self.registry.ttl(namehash(name))

  async def get_owner_with_labelhash(self, label_hash, node_hash) -> str:
    return await self.registry.owner(namehash_from_parent(node_hash, label_hash))

  async def get_resolver_with_labelhash(self, label_hash, node_hash) -> str:
    return await self.registry.resolver(namehash_from_parent(node_hash, label_hash))

  async def is_migrated(self, name: str) -> bool:
    return await self.registry.record_exists(namehash(name))

  # ───────────────────────────────────────────────────────────────────────────
  # Resolver reads
  # ───────────────────────────────────────────────────────────────────────────

  async def get_address(self, name: str) -> str:
    resolver_addr = await self.get_resolver(name)
    return await self.get_eth_address_with_resolver(name, resolver_addr)

  async def get_eth_address_with_resolver(self, name: str, resolver_addr: str) -> str:
    """addr(bytes32) on the given resolver; EMPTY_ADDRESS on any failure."""
    node = namehash(name)
    if is_empty_address(resolver_addr):
      return EMPTY_ADDRESS
    try:
      return await self._make_resolver(resolver_addr).addr(node)
    except CollaboratorError as e:
      logger.warning(f'{RESOLVER_ERROR.format(record="addr")} name={name} ({e})')
      return EMPTY_ADDRESS

  async def get_addr(self, name: str, key: str) -> str:
    resolver_addr = await self.get_resolver(name)
    return await self.get_addr_with_resolver(name, key, resolver_addr)

  async def get_addr_with_resolver(self, name: str, key: str, resolver_addr: str) -> str:
    """
    Multi-coin address for `key` ('ETH', 'ONE', ...), encoded for display.

    Raises:
      UnknownCoinKeyError: before any call, for unregistered keys
    """
    node = namehash(name)
    coin = self.coins.lookup(key)
    if is_empty_address(resolver_addr):
      return EMPTY_ADDRESS
    try:
      raw = await self._make_resolver(resolver_addr).addr_for_coin(node, coin.coin_type)
    except CollaboratorError as e:
      logger.warning(f'{RESOLVER_ERROR.format(record="addr")} name={name} coin={key} ({e})')
      return EMPTY_ADDRESS
    if not raw:
      return EMPTY_ADDRESS
    try:
      return coin.encode(bytes(raw))
    except ValueError as e:
      logger.warning(f'Undecodable {key} address for {name}: {e}')
      return EMPTY_ADDRESS

  async def get_content(self, name: str) -> ContentRecord:
    resolver_addr = await self.get_resolver(name)
    return await self.get_content_with_resolver(name, resolver_addr)

  async def get_content_with_resolver(self, name: str, resolver_addr: str) -> ContentRecord:
    """
    Contenthash (EIP-1577) if the resolver supports it, else legacy content.

    No resolver yields ContentRecord('contenthash', '').
    """
    node = namehash(name)
    if is_empty_address(resolver_addr):
      return ContentRecord(CONTENTHASH, '')
    resolver = self._make_resolver(resolver_addr)
    try:
      if await resolver.supports_interface(CONTENTHASH_INTERFACE_ID):
        encoded = await resolver.contenthash(node)
        result = decode_contenthash(encoded)
        if result.error:
          return ContentRecord(ERROR, result.error)
        if result.protocol_type is None:
          return ContentRecord(CONTENTHASH, '')
        return ContentRecord(CONTENTHASH, result.uri)
      value = await resolver.content(node)
      return ContentRecord(OLD_CONTENT, Web3.to_hex(value))
    except CollaboratorError as e:
      message = RESOLVER_ERROR.format(record='content')
      logger.warning(f'{message} name={name} ({e})')
      return ContentRecord(ERROR, message)

  async def get_text(self, name: str, key: str) -> str:
    resolver_addr = await self.get_resolver(name)
    return await self.get_text_with_resolver(name, key, resolver_addr)

  async def get_text_with_resolver(self, name: str, key: str, resolver_addr: str) -> str:
    node = namehash(name)
    if is_empty_address(resolver_addr):
      return ''
    try:
      return await self._make_resolver(resolver_addr).text(node, key)
    except CollaboratorError as e:
      logger.warning(f'{RESOLVER_ERROR.format(record="text record")} name={name} ({e})')
      return ''

  async def get_name(self, address: str) -> dict:
    resolver_addr = await self.get_resolver(reverse_name(address))
    return await self.get_name_with_resolver(address, resolver_addr)

  async def get_name_with_resolver(self, address: str, resolver_addr: str) -> dict:
    """Reverse record of `address` as {'name': str | None}."""
    reverse_node = namehash(reverse_name(address))
    if is_empty_address(resolver_addr):
      return {'name': None}
    try:
      name = await self._make_resolver(resolver_addr).name(reverse_node)
    except CollaboratorError as e:
      logger.warning(f'Error getting name for reverse record of {address} ({e})')
      return {'name': None}
    return {'name': name or None}

  # ───────────────────────────────────────────────────────────────────────────
  # Composite reads
  # ───────────────────────────────────────────────────────────────────────────

  async def get_resolver_details(self, node: dict) -> dict:
    """`node` plus addr/content/content_type, fetched concurrently."""
    try:
      addr, content = await asyncio.gather(
        self.get_address(node['name']),
        self.get_content(node['name']),
      )
    except CollaboratorError as e:
      logger.warning(f'Resolver details failed for {node["name"]} ({e})')
      return {**node, 'addr': '0x0', 'content': '0x0', 'content_type': ERROR}
    return {
      **node,
      'addr': addr,
      'content': content.value,
      'content_type': content.content_type,
    }

  async def get_domain_details(self, name: str) -> dict:
    """Owner, resolver and (if a resolver is set) addr and content of `name`."""
    label, _ = split_name(name)
    owner, resolver = await asyncio.gather(
      self.get_owner(name),
      self.get_resolver(name),
    )
    node = {
      'name': name,
      'label': label,
      'labelhash': get_labelhash(label),
      'owner': owner,
      'resolver': resolver,
    }
    if not is_empty_address(resolver):
      return await self.get_resolver_details(node)
    return {**node, 'addr': None, 'content': None}

  async def get_new_owner_events(self, name: str, from_block: Optional[int] = None) -> list[dict]:
    """NewOwner events directly under `name`, newest first."""
    if from_block is None:
      from_block = self.network.start_block
    return await self.registry.new_owner_events(namehash(name), from_block)

  async def get_subdomains(self, name: str) -> list:
    """
    Every subdomain ever assigned under `name`, oldest first.

    Labels come from the preimage service or the local dictionary; unknown
    ones are named '[<labelhash>].<name>'. Owners are current registry
    owners, so deleted subdomains appear with EMPTY_ADDRESS.
    """
    parent = namehash(name)
    events = await self.get_new_owner_events(name)
    entries = await reconcile(
      [event['label'] for event in events],
      name,
      decrypter=self.decrypter,
      label_store=self.labels,
    )
    owners = await asyncio.gather(*(
      self.get_owner_with_labelhash(entry.labelhash, parent) for entry in entries
    ))
    for entry, owner in zip(entries, owners):
      entry.owner = owner
    return entries

  # ───────────────────────────────────────────────────────────────────────────
  # Registry writes
  # ───────────────────────────────────────────────────────────────────────────

  async def set_owner(self, name: str, new_owner: str):
    return await self.registry.set_owner(namehash(name), new_owner)

  async def set_subnode_owner(self, name: str, new_owner: str):
    label, parent = split_name(name)
    self.labels.save_label(label)
    return await self.registry.set_subnode_owner(namehash(parent), labelhash(label), new_owner)

  async def set_subnode_record(self, name: str, new_owner: str, resolver: str, ttl: Optional[int] = None):
    """setSubnodeRecord; `ttl` defaults to the name's current TTL."""
    label, parent = split_name(name)
    if ttl is None:
      ttl = await self.get_ttl(name)
    self.labels.save_label(label)
    return await self.registry.set_subnode_record(
      namehash(parent),
      labelhash(label),
      new_owner,
      resolver,
      ttl,
    )

  async def set_resolver(self, name: str, resolver: str):
    return await self.registry.set_resolver(namehash(name), resolver)

  async def create_subdomain(self, name: str):
    """Assign `name` to the signer's account with the network's public resolver."""
    account = self._require_signer().address
    public_resolver = await self.get_address(self.network.public_resolver)
    return await self.set_subnode_record(name, account, public_resolver)

  async def delete_subdomain(self, name: str):
    """
    Zero the owner and resolver of `name`.

    The NewOwner history stays on-chain, so get_subdomains still lists the
    label (with an empty owner).
    """
    return await self.set_subnode_record(name, EMPTY_ADDRESS, EMPTY_ADDRESS)

  # ───────────────────────────────────────────────────────────────────────────
  # Resolver writes
  # ───────────────────────────────────────────────────────────────────────────

  async def set_address(self, name: str, address: str):
    resolver_addr = await self.get_resolver(name)
    return await self.set_address_with_resolver(name, address, resolver_addr)

  async def set_address_with_resolver(self, name: str, address: str, resolver_addr: str):
    resolver = self._make_resolver(resolver_addr)
    return await resolver.set_addr(namehash(name), address)

  async def set_addr(self, name: str, key: str, address: str):
    resolver_addr = await self.get_resolver(name)
    return await self.set_addr_with_resolver(name, key, address, resolver_addr)

  async def set_addr_with_resolver(self, name: str, key: str, address: str, resolver_addr: str):
    """Set the `key` coin address; an empty address clears the record."""
    node = namehash(name)
    coin = self.coins.lookup(key)
    address_bytes = coin.decode(address) if address else b''
    resolver = self._make_resolver(resolver_addr)
    return await resolver.set_addr_for_coin(node, coin.coin_type, address_bytes)

  async def set_content(self, name: str, content):
    resolver_addr = await self.get_resolver(name)
    return await self.set_content_with_resolver(name, content, resolver_addr)

  async def set_content_with_resolver(self, name: str, content, resolver_addr: str):
    """Legacy 32-byte content record (bytes or 0x hex)."""
    if isinstance(content, str):
      content = bytes.fromhex(content[2:] if content.startswith('0x') else content)
    resolver = self._make_resolver(resolver_addr)
    return await resolver.set_content(namehash(name), content)

  async def set_contenthash(self, name: str, content: str):
    resolver_addr = await self.get_resolver(name)
    return await self.set_contenthash_with_resolver(name, content, resolver_addr)

  async def set_contenthash_with_resolver(self, name: str, content: str, resolver_addr: str):
    """
    Encode and store a content URI; '' or '0x' clears the record.

    Raises:
      UnsupportedSchemeError, MalformedPayloadError: before any call
    """
    node = namehash(name)
    encoded = b'' if is_empty_contenthash(content) else encode_contenthash(content)
    resolver = self._make_resolver(resolver_addr)
    return await resolver.set_contenthash(node, encoded)

  async def set_text(self, name: str, key: str, value: str):
    resolver_addr = await self.get_resolver(name)
    return await self.set_text_with_resolver(name, key, value, resolver_addr)

  async def set_text_with_resolver(self, name: str, key: str, value: str, resolver_addr: str):
    resolver = self._make_resolver(resolver_addr)
    return await resolver.set_text(namehash(name), key, value)

  # ───────────────────────────────────────────────────────────────────────────
  # Reverse registrar
  # ───────────────────────────────────────────────────────────────────────────

  async def claim_and_set_reverse_record_name(self, name: str, gas: Optional[int] = None):
    """Claim the signer's reverse node and point it at `name`."""
    self._require_signer()
    registrar_addr = await self.get_owner('addr.reverse')
    registrar = self._make_reverse_registrar(registrar_addr)
    return await registrar.set_name(name, gas=gas)

  async def set_reverse_record_name(self, name: str):
    """Set the name on an already-claimed reverse record of the signer."""
    reverse_node = reverse_name(self._require_signer().address)
    resolver_addr = await self.get_resolver(reverse_node)
    resolver = self._make_resolver(resolver_addr)
    return await resolver.set_name(namehash(reverse_node), name)
