"""
Typed wrappers over the registry, resolver and reverse-registrar contracts.

One coroutine per contract method the client uses. Reads return decoded
values; writes return a PendingTransaction from the Signer. Any provider
failure is re-raised as CollaboratorError.
"""
import logging
from typing import Optional

from eth_abi import decode as abi_decode
from web3 import Web3

from fns.errors import CollaboratorError
from fns.utils.web3_utils import (
  MULTICOIN_RESOLVER_ABI,
  NEW_OWNER_TOPIC,
  REGISTRY_ABI,
  RESOLVER_ABI,
  REVERSE_REGISTRAR_ABI,
)

logger = logging.getLogger('fns')


class _Contract:
  abi = ()

  def __init__(self, w3, address: str, signer=None):
    self.w3 = w3
    self.address = Web3.to_checksum_address(address)
    self.signer = signer
    self.contract = w3.eth.contract(address=self.address, abi=self.abi)

  async def _call(self, fn, label: str):
    try:
      return await fn.call()
    except Exception as e:
      raise CollaboratorError(f'{label} failed on {self.address}: {e}') from e

  async def _send(self, fn, label: str, gas: Optional[int] = None):
    if self.signer is None:
      raise CollaboratorError(f'{label}: no signer configured')
    return await self.signer.submit(fn, label, gas=gas)


class Registry(_Contract):
  abi = REGISTRY_ABI

  async def owner(self, node: bytes) -> str:
    return await self._call(self.contract.functions.owner(node), 'owner')

  async def resolver(self, node: bytes) -> str:
    return await self._call(self.contract.functions.resolver(node), 'resolver')

  async def ttl(self, node: bytes) -> int:
    return await self._call(self.contract.functions.ttl(node), 'ttl')

  async def record_exists(self, node: bytes) -> bool:
    return await self._call(self.contract.functions.recordExists(node), 'recordExists')

  async def new_owner_events(self, node: bytes, from_block: int = 0) -> list[dict]:
    """
    NewOwner events under `node`, newest first.

    Returns:
      list of {'node', 'label', 'owner', 'block_number', 'log_index'}
    """
    try:
      logs = await self.w3.eth.get_logs({
        'fromBlock': from_block,
        'toBlock': 'latest',
        'address': self.address,
        'topics': [NEW_OWNER_TOPIC, Web3.to_hex(node)],
      })
    except Exception as e:
      raise CollaboratorError(f'NewOwner logs failed on {self.address}: {e}') from e

    events = []
    for log in logs:
      (owner,) = abi_decode(['address'], bytes(log['data']))
      events.append({
        'node': bytes(log['topics'][1]),
        'label': bytes(log['topics'][2]),
        'owner': Web3.to_checksum_address(owner),
        'block_number': log['blockNumber'],
        'log_index': log['logIndex'],
      })
    events.sort(key=lambda e: (e['block_number'], e['log_index']), reverse=True)
    logger.debug(f'NewOwner node={Web3.to_hex(node)} events={len(events)}')
    return events

  async def set_owner(self, node: bytes, owner: str):
    fn = self.contract.functions.setOwner(node, Web3.to_checksum_address(owner))
    return await self._send(fn, 'setOwner')

  async def set_subnode_owner(self, node: bytes, label: bytes, owner: str):
    fn = self.contract.functions.setSubnodeOwner(node, label, Web3.to_checksum_address(owner))
    return await self._send(fn, 'setSubnodeOwner')

  async def set_subnode_record(self, node: bytes, label: bytes, owner: str, resolver: str, ttl: int):
    fn = self.contract.functions.setSubnodeRecord(
      node,
      label,
      Web3.to_checksum_address(owner),
      Web3.to_checksum_address(resolver),
      ttl,
    )
    return await self._send(fn, 'setSubnodeRecord')

  async def set_resolver(self, node: bytes, resolver: str):
    fn = self.contract.functions.setResolver(node, Web3.to_checksum_address(resolver))
    return await self._send(fn, 'setResolver')


class Resolver(_Contract):
  abi = RESOLVER_ABI

  def __init__(self, w3, address: str, signer=None):
    super().__init__(w3, address, signer)
    self.multicoin = w3.eth.contract(address=self.address, abi=MULTICOIN_RESOLVER_ABI)

  async def supports_interface(self, interface_id: bytes) -> bool:
    fn = self.contract.functions.supportsInterface(interface_id)
    return await self._call(fn, 'supportsInterface')

  async def addr(self, node: bytes) -> str:
    return await self._call(self.contract.functions.addr(node), 'addr')

  async def addr_for_coin(self, node: bytes, coin_type: int) -> bytes:
    return await self._call(self.multicoin.functions.addr(node, coin_type), 'addr(coinType)')

  async def content(self, node: bytes) -> bytes:
    return await self._call(self.contract.functions.content(node), 'content')

  async def contenthash(self, node: bytes) -> bytes:
    return await self._call(self.contract.functions.contenthash(node), 'contenthash')

  async def text(self, node: bytes, key: str) -> str:
    return await self._call(self.contract.functions.text(node, key), 'text')

  async def name(self, node: bytes) -> str:
    return await self._call(self.contract.functions.name(node), 'name')

  async def set_addr(self, node: bytes, address: str):
    fn = self.contract.functions.setAddr(node, Web3.to_checksum_address(address))
    return await self._send(fn, 'setAddr')

  async def set_addr_for_coin(self, node: bytes, coin_type: int, address: bytes):
    fn = self.multicoin.functions.setAddr(node, coin_type, address)
    return await self._send(fn, 'setAddr(coinType)')

  async def set_content(self, node: bytes, content: bytes):
    return await self._send(self.contract.functions.setContent(node, content), 'setContent')

  async def set_contenthash(self, node: bytes, contenthash: bytes):
    fn = self.contract.functions.setContenthash(node, contenthash)
    return await self._send(fn, 'setContenthash')

  async def set_text(self, node: bytes, key: str, value: str):
    return await self._send(self.contract.functions.setText(node, key, value), 'setText')

  async def set_name(self, node: bytes, name: str):
    return await self._send(self.contract.functions.setName(node, name), 'setName')


class ReverseRegistrar(_Contract):
  abi = REVERSE_REGISTRAR_ABI

  async def set_name(self, name: str, gas: Optional[int] = None):
    return await self._send(self.contract.functions.setName(name), 'reverse.setName', gas=gas)
