"""
Web3 utilities for the FNS client.

- Network table (chain id → registry address, event start block)
- Contract ABIs (minimal fragments, only the functions the client calls)
- AsyncWeb3 provider helper and address helpers
"""
from dataclasses import dataclass

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

EMPTY_ADDRESS = '0x0000000000000000000000000000000000000000'


def is_empty_address(address) -> bool:
  """True for None, '', '0x' and the zero address."""
  if not address:
    return True
  stripped = address[2:] if address.startswith('0x') else address
  return not stripped or int(stripped, 16) == 0


# ─────────────────────────────────────────────────────────────────────────────
# Networks
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NetworkConfig:
  name: str
  registry: str
  # first block worth scanning for registry events
  start_block: int = 0
  # name whose addr() record is the public resolver
  public_resolver: str = 'resolver.ftm'


DEFAULT_NETWORKS = {
  4002: NetworkConfig(
    name='fantomTestnet',
    registry='0x7ab9cf80efb603938Ed723202c5Cbf80DD653217',
    public_resolver='resolver.ftm',
  ),
  1666700000: NetworkConfig(
    name='harmonyTestnet',
    registry='0x23ca23b6f2C40BF71fe4Da7C5d6396EE2C018e6A',
    public_resolver='resolver.one',
  ),
  1666600000: NetworkConfig(
    name='harmony',
    registry='0x3fa4135B88cE1035Fed373F0801118a3340B37e7',
    public_resolver='resolver.one',
  ),
}


# ─────────────────────────────────────────────────────────────────────────────
# Contract ABIs
# ─────────────────────────────────────────────────────────────────────────────

REGISTRY_ABI = [
  # owner(bytes32 node) → address
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'owner',
    'outputs': [{'name': '', 'type': 'address'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # resolver(bytes32 node) → address
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'resolver',
    'outputs': [{'name': '', 'type': 'address'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # ttl(bytes32 node) → uint64
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'ttl',
    'outputs': [{'name': '', 'type': 'uint64'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # recordExists(bytes32 node) → bool
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'recordExists',
    'outputs': [{'name': '', 'type': 'bool'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setOwner(bytes32 node, address owner)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'owner', 'type': 'address'},
    ],
    'name': 'setOwner',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # setSubnodeOwner(bytes32 node, bytes32 label, address owner) → bytes32
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'label', 'type': 'bytes32'},
      {'name': 'owner', 'type': 'address'},
    ],
    'name': 'setSubnodeOwner',
    'outputs': [{'name': '', 'type': 'bytes32'}],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # setSubnodeRecord(bytes32 node, bytes32 label, address owner, address resolver, uint64 ttl)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'label', 'type': 'bytes32'},
      {'name': 'owner', 'type': 'address'},
      {'name': 'resolver', 'type': 'address'},
      {'name': 'ttl', 'type': 'uint64'},
    ],
    'name': 'setSubnodeRecord',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # setResolver(bytes32 node, address resolver)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'resolver', 'type': 'address'},
    ],
    'name': 'setResolver',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
]

# NewOwner(bytes32 indexed node, bytes32 indexed label, address owner)
NEW_OWNER_TOPIC = Web3.to_hex(Web3.keccak(text='NewOwner(bytes32,bytes32,address)'))

# addr / setAddr are overloaded on the public resolver. Each overload set
# lives in its own fragment so every contract object has one function per name.
RESOLVER_ABI = [
  # supportsInterface(bytes4 interfaceID) → bool
  {
    'inputs': [{'name': 'interfaceID', 'type': 'bytes4'}],
    'name': 'supportsInterface',
    'outputs': [{'name': '', 'type': 'bool'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # addr(bytes32 node) → address
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'addr',
    'outputs': [{'name': '', 'type': 'address'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setAddr(bytes32 node, address addr)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'addr', 'type': 'address'},
    ],
    'name': 'setAddr',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # content(bytes32 node) → bytes32
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'content',
    'outputs': [{'name': '', 'type': 'bytes32'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setContent(bytes32 node, bytes32 hash)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'hash', 'type': 'bytes32'},
    ],
    'name': 'setContent',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # contenthash(bytes32 node) → bytes
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'contenthash',
    'outputs': [{'name': '', 'type': 'bytes'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setContenthash(bytes32 node, bytes hash)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'hash', 'type': 'bytes'},
    ],
    'name': 'setContenthash',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # text(bytes32 node, string key) → string
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'key', 'type': 'string'},
    ],
    'name': 'text',
    'outputs': [{'name': '', 'type': 'string'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setText(bytes32 node, string key, string value)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'key', 'type': 'string'},
      {'name': 'value', 'type': 'string'},
    ],
    'name': 'setText',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
  # name(bytes32 node) → string
  {
    'inputs': [{'name': 'node', 'type': 'bytes32'}],
    'name': 'name',
    'outputs': [{'name': '', 'type': 'string'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setName(bytes32 node, string name)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'name', 'type': 'string'},
    ],
    'name': 'setName',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
]

MULTICOIN_RESOLVER_ABI = [
  # addr(bytes32 node, uint256 coinType) → bytes
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'coinType', 'type': 'uint256'},
    ],
    'name': 'addr',
    'outputs': [{'name': '', 'type': 'bytes'}],
    'stateMutability': 'view',
    'type': 'function',
  },
  # setAddr(bytes32 node, uint256 coinType, bytes a)
  {
    'inputs': [
      {'name': 'node', 'type': 'bytes32'},
      {'name': 'coinType', 'type': 'uint256'},
      {'name': 'a', 'type': 'bytes'},
    ],
    'name': 'setAddr',
    'outputs': [],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
]

REVERSE_REGISTRAR_ABI = [
  # setName(string name) → bytes32
  {
    'inputs': [{'name': 'name', 'type': 'string'}],
    'name': 'setName',
    'outputs': [{'name': '', 'type': 'bytes32'}],
    'stateMutability': 'nonpayable',
    'type': 'function',
  },
]

# bytes4(keccak256('contenthash(bytes32)'))
CONTENTHASH_INTERFACE_ID = bytes(Web3.keccak(text='contenthash(bytes32)'))[:4]


# ─────────────────────────────────────────────────────────────────────────────
# Provider helpers
# ─────────────────────────────────────────────────────────────────────────────

def get_w3(rpc_url: str) -> AsyncWeb3:
  """Get an AsyncWeb3 instance for the given RPC endpoint."""
  if not rpc_url:
    raise ValueError('FNS_RPC_URL not configured')
  return AsyncWeb3(AsyncHTTPProvider(rpc_url))
