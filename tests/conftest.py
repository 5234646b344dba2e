"""
In-memory stand-ins for the chain collaborators.

FakeChain keeps registry and resolver state in dicts; FakeFNS wires the
FNS client to it instead of web3 contracts.
"""
from dataclasses import dataclass, field

import pytest
from web3 import Web3

from fns.client import FNS
from fns.errors import CollaboratorError
from fns.utils.labels import LabelStore
from fns.utils.namehash import namehash, namehash_from_parent
from fns.utils.web3_utils import EMPTY_ADDRESS

ACCOUNT = '0x1111111111111111111111111111111111111111'
OTHER = '0x2222222222222222222222222222222222222222'
PUBLIC_RESOLVER = '0x4444444444444444444444444444444444444444'
OLD_RESOLVER = '0x5555555555555555555555555555555555555555'
BROKEN_RESOLVER = '0x6666666666666666666666666666666666666666'
REVERSE_REGISTRAR = '0x7777777777777777777777777777777777777777'
REGISTRY = '0x8888888888888888888888888888888888888888'


@dataclass
class FakePending:
  call: str
  args: tuple

  async def wait(self):
    return {'status': 1}


@dataclass
class FakeChain:
  owners: dict = field(default_factory=dict)
  resolvers: dict = field(default_factory=dict)
  ttls: dict = field(default_factory=dict)
  # label hashes under a parent node, newest first
  events: dict = field(default_factory=dict)
  # resolver address → {record kind → {key → value}}
  records: dict = field(default_factory=dict)
  sent: list = field(default_factory=list)
  fail_writes: bool = False

  def record(self, resolver, kind):
    return self.records.setdefault(resolver.lower(), {}).setdefault(kind, {})

  def send(self, call, *args):
    if self.fail_writes:
      raise CollaboratorError(f'{call} transaction failed: execution reverted')
    self.sent.append((call, args))
    return FakePending(call, args)


class FakeRegistry:
  def __init__(self, chain: FakeChain):
    self.chain = chain

  async def owner(self, node):
    return self.chain.owners.get(bytes(node), EMPTY_ADDRESS)

  async def resolver(self, node):
    return self.chain.resolvers.get(bytes(node), EMPTY_ADDRESS)

  async def ttl(self, node):
    return self.chain.ttls.get(bytes(node), 0)

  async def record_exists(self, node):
    return bytes(node) in self.chain.owners

  async def new_owner_events(self, node, from_block=0):
    return [
      {'node': bytes(node), 'label': label, 'owner': owner}
      for label, owner in self.chain.events.get(bytes(node), [])
    ]

  def _assign(self, node, label, owner):
    child = namehash_from_parent(node, label)
    self.chain.owners[child] = owner
    self.chain.events.setdefault(bytes(node), []).insert(0, (bytes(label), owner))
    return child

  async def set_owner(self, node, owner):
    pending = self.chain.send('setOwner', node, owner)
    self.chain.owners[bytes(node)] = owner
    return pending

  async def set_subnode_owner(self, node, label, owner):
    pending = self.chain.send('setSubnodeOwner', node, label, owner)
    self._assign(node, label, owner)
    return pending

  async def set_subnode_record(self, node, label, owner, resolver, ttl):
    pending = self.chain.send('setSubnodeRecord', node, label, owner, resolver, ttl)
    child = self._assign(node, label, owner)
    self.chain.resolvers[child] = resolver
    self.chain.ttls[child] = ttl
    return pending

  async def set_resolver(self, node, resolver):
    pending = self.chain.send('setResolver', node, resolver)
    self.chain.resolvers[bytes(node)] = resolver
    return pending


class FakeResolver:
  def __init__(self, chain: FakeChain, address: str):
    self.chain = chain
    self.address = address
    self.broken = address.lower() == BROKEN_RESOLVER.lower()
    self.legacy = address.lower() == OLD_RESOLVER.lower()

  def _check(self, call):
    if self.broken:
      raise CollaboratorError(f'{call} failed on {self.address}: execution reverted')

  async def supports_interface(self, interface_id):
    self._check('supportsInterface')
    return not self.legacy

  async def addr(self, node):
    self._check('addr')
    return self.chain.record(self.address, 'addr').get(bytes(node), EMPTY_ADDRESS)

  async def addr_for_coin(self, node, coin_type):
    self._check('addr(coinType)')
    return self.chain.record(self.address, 'coins').get((bytes(node), coin_type), b'')

  async def content(self, node):
    self._check('content')
    return self.chain.record(self.address, 'content').get(bytes(node), b'\x00' * 32)

  async def contenthash(self, node):
    self._check('contenthash')
    return self.chain.record(self.address, 'contenthash').get(bytes(node), b'')

  async def text(self, node, key):
    self._check('text')
    return self.chain.record(self.address, 'text').get((bytes(node), key), '')

  async def name(self, node):
    self._check('name')
    return self.chain.record(self.address, 'name').get(bytes(node), '')

  async def set_addr(self, node, address):
    pending = self.chain.send('setAddr', node, address)
    self.chain.record(self.address, 'addr')[bytes(node)] = address
    return pending

  async def set_addr_for_coin(self, node, coin_type, address):
    pending = self.chain.send('setAddr(coinType)', node, coin_type, address)
    self.chain.record(self.address, 'coins')[(bytes(node), coin_type)] = address
    return pending

  async def set_content(self, node, content):
    pending = self.chain.send('setContent', node, content)
    self.chain.record(self.address, 'content')[bytes(node)] = content
    return pending

  async def set_contenthash(self, node, contenthash):
    pending = self.chain.send('setContenthash', node, contenthash)
    self.chain.record(self.address, 'contenthash')[bytes(node)] = contenthash
    return pending

  async def set_text(self, node, key, value):
    pending = self.chain.send('setText', node, key, value)
    self.chain.record(self.address, 'text')[(bytes(node), key)] = value
    return pending

  async def set_name(self, node, name):
    pending = self.chain.send('setName', node, name)
    self.chain.record(self.address, 'name')[bytes(node)] = name
    return pending


class FakeReverseRegistrar:
  def __init__(self, chain: FakeChain, resolver: FakeResolver, account: str):
    self.chain = chain
    self.resolver = resolver
    self.account = account

  async def set_name(self, name, gas=None):
    pending = self.chain.send('reverse.setName', name, gas)
    node = namehash(f'{self.account[2:].lower()}.addr.reverse')
    self.chain.record(self.resolver.address, 'name')[node] = name
    return pending


class FakeSigner:
  address = Web3.to_checksum_address(ACCOUNT)


class FakeDecrypter:
  def __init__(self, answers=None, error=None):
    self.answers = answers or {}
    self.error = error
    self.calls = []

  async def decrypt(self, label_hashes):
    self.calls.append(list(label_hashes))
    if self.error:
      raise self.error
    return [self.answers.get(h) for h in label_hashes]


class FakeFNS(FNS):
  def __init__(self, chain: FakeChain, **kwargs):
    self.chain = chain
    kwargs.setdefault('network_id', 4002)
    kwargs.setdefault('labels', LabelStore())
    super().__init__(None, **kwargs)

  def _make_registry(self):
    return FakeRegistry(self.chain)

  def _make_resolver(self, address):
    return FakeResolver(self.chain, address)

  def _make_reverse_registrar(self, address):
    return FakeReverseRegistrar(
      self.chain,
      FakeResolver(self.chain, PUBLIC_RESOLVER),
      self.signer.address,
    )


@pytest.fixture
def chain():
  chain = FakeChain()
  # 'ftm' and 'resolver.ftm' with the public resolver pointing at itself
  chain.owners[namehash('ftm')] = ACCOUNT
  chain.owners[namehash('resolver.ftm')] = ACCOUNT
  chain.resolvers[namehash('resolver.ftm')] = PUBLIC_RESOLVER
  chain.record(PUBLIC_RESOLVER, 'addr')[namehash('resolver.ftm')] = PUBLIC_RESOLVER
  chain.owners[namehash('addr.reverse')] = REVERSE_REGISTRAR
  return chain


@pytest.fixture
def fns(chain):
  return FakeFNS(chain, signer=FakeSigner(), decrypter=FakeDecrypter())
