"""
Contenthash codec (EIP-1577).

A contenthash is a multicodec protocol code followed by a protocol-specific
payload:

  ipfs://<cid>     0xe3   + CIDv1 bytes (CIDv0 input is upgraded to v1)
  ipns://<cid>     0xe5   + CIDv1 bytes, libp2p-key codec
  bzz://<hex>      0xe4   + CIDv1(swarm-manifest, keccak-256 multihash)
  onion://<16>     0x01bc + ascii
  onion3://<56>    0x01bd + ascii

Decoding renders CIDs canonically (base32 for ipfs, base36 for ipns), so
'ipfs://Qm...' comes back as 'ipfs://bafy...'.
"""
import re
from dataclasses import dataclass
from typing import Optional, Union

from multiformats import CID, varint

from fns.errors import (
  ContenthashError,
  MalformedPayloadError,
  UnrecognizedEncodingError,
  UnsupportedSchemeError,
)

# Multicodec protocol codes
IPFS_NS = 0xe3
SWARM_NS = 0xe4
IPNS_NS = 0xe5
ONION = 0x01bc
ONION3 = 0x01bd

# Multicodec content codes used inside CIDs
SWARM_MANIFEST = 0xfa
LIBP2P_KEY = 0x72
KECCAK_256 = 0x1b

PROTOCOL_CODES = {
  'ipfs': IPFS_NS,
  'ipns': IPNS_NS,
  'bzz': SWARM_NS,
  'onion': ONION,
  'onion3': ONION3,
}
PROTOCOL_TYPES = {code: scheme for scheme, code in PROTOCOL_CODES.items()}

_URI_RE = re.compile(r'^([a-z0-9]+)://(.*)$')
_PATH_RE = re.compile(r'^/(ipfs|ipns)/(.*)$')


@dataclass
class DecodedContenthash:
  """Result of decode_contenthash. `error` is set instead of raising."""

  protocol_type: Optional[str]
  decoded: Optional[str]
  error: Optional[str] = None

  @property
  def uri(self) -> Optional[str]:
    if self.error or self.protocol_type is None:
      return None
    return f'{self.protocol_type}://{self.decoded}'


# ─────────────────────────────────────────────────────────────────────────────
# Payload codecs
# ─────────────────────────────────────────────────────────────────────────────

def _cid_bytes(version: int, codec: int, multihash: bytes) -> bytes:
  return varint.encode(version) + varint.encode(codec) + bytes(multihash)


def _parse_cid(payload: str) -> CID:
  try:
    return CID.decode(payload)
  except (ValueError, KeyError, IndexError) as e:
    raise MalformedPayloadError(f'Invalid content identifier {payload!r}: {e}') from e


def _encode_ipfs(payload: str) -> bytes:
  cid = _parse_cid(payload)
  return _cid_bytes(1, cid.codec.code, cid.digest)


def _encode_ipns(payload: str) -> bytes:
  cid = _parse_cid(payload)
  return _cid_bytes(1, LIBP2P_KEY, cid.digest)


# TODO: accept bare base58 peer ids ('12D3Koo...') for ipns, CID.decode rejects them


def _encode_swarm(payload: str) -> bytes:
  if payload.startswith('0x'):
    payload = payload[2:]
  try:
    raw = bytes.fromhex(payload)
  except ValueError as e:
    raise MalformedPayloadError(f'Swarm hash is not hex: {payload!r}') from e
  if len(raw) != 32:
    raise MalformedPayloadError(f'Swarm hash must be 32 bytes, got {len(raw)}')
  multihash = varint.encode(KECCAK_256) + varint.encode(len(raw)) + raw
  return _cid_bytes(1, SWARM_MANIFEST, multihash)


def _onion_encoder(length: int):
  def encode(payload: str) -> bytes:
    if len(payload) != length or not payload.isascii() or not payload.isalnum():
      raise MalformedPayloadError(
        f'Onion address must be {length} alphanumeric characters, got {payload!r}'
      )
    return payload.encode('ascii')
  return encode


_ENCODERS = {
  IPFS_NS: _encode_ipfs,
  IPNS_NS: _encode_ipns,
  SWARM_NS: _encode_swarm,
  ONION: _onion_encoder(16),
  ONION3: _onion_encoder(56),
}


def _decode_cid(data: bytes) -> CID:
  try:
    return CID.decode(bytes(data))
  except (ValueError, KeyError, IndexError) as e:
    raise MalformedPayloadError(f'Invalid CID bytes: {e}') from e


def _decode_ipfs(data: bytes) -> str:
  cid = _decode_cid(data)
  return CID('base32', 1, cid.codec, cid.digest).encode()


def _decode_ipns(data: bytes) -> str:
  cid = _decode_cid(data)
  return CID('base36', 1, 'libp2p-key', cid.digest).encode()


def _read_varint(data: bytes, what: str) -> tuple[int, bytes]:
  try:
    value, consumed, _ = varint.decode_raw(data)
  except (ValueError, IndexError) as e:
    raise MalformedPayloadError(f'Truncated {what}') from e
  return value, data[consumed:]


def _decode_swarm(data: bytes) -> str:
  version, rest = _read_varint(bytes(data), 'swarm CID version')
  codec, rest = _read_varint(rest, 'swarm CID codec')
  hash_code, rest = _read_varint(rest, 'swarm multihash code')
  length, rest = _read_varint(rest, 'swarm multihash length')
  if (version, codec, hash_code) != (1, SWARM_MANIFEST, KECCAK_256):
    raise MalformedPayloadError('Swarm contenthash is not a keccak-256 manifest CID')
  if length != 32 or len(rest) != 32:
    raise MalformedPayloadError(f'Swarm hash must be 32 bytes, got {len(rest)}')
  return rest.hex()


def _decode_onion(data: bytes) -> str:
  try:
    return bytes(data).decode('ascii')
  except UnicodeDecodeError as e:
    raise MalformedPayloadError('Onion address is not ascii') from e


_DECODERS = {
  IPFS_NS: _decode_ipfs,
  IPNS_NS: _decode_ipns,
  SWARM_NS: _decode_swarm,
  ONION: _decode_onion,
  ONION3: _decode_onion,
}


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def split_content_uri(text: str) -> tuple[str, str]:
  """
  Split 'scheme://payload' (or '/ipfs/<cid>') into (scheme, payload).

  Raises:
    UnsupportedSchemeError: if the text has no recognizable scheme
  """
  matched = _URI_RE.match(text or '') or _PATH_RE.match(text or '')
  if not matched:
    raise UnsupportedSchemeError(f'Not a content URI: {text!r}')
  return matched.group(1), matched.group(2)


def encode_contenthash(text: str) -> bytes:
  """
  Encode a content URI into contenthash bytes.

  Args:
    text: 'ipfs://...', 'ipns://...', 'bzz://...', 'onion://...',
          'onion3://...' or '/ipfs/<cid>'

  Returns:
    Binary contenthash (protocol code varint + payload)

  Raises:
    UnsupportedSchemeError: unknown scheme
    MalformedPayloadError: payload does not parse for the scheme
  """
  scheme, payload = split_content_uri(text)
  code = PROTOCOL_CODES.get(scheme)
  if code is None:
    raise UnsupportedSchemeError(f'Unsupported content protocol: {scheme}')
  if not payload:
    raise MalformedPayloadError(f'Empty {scheme} payload')
  return varint.encode(code) + _ENCODERS[code](payload)


def _decode_strict(data: bytes) -> DecodedContenthash:
  try:
    code, consumed, _ = varint.decode_raw(data)
  except (ValueError, IndexError) as e:
    raise UnrecognizedEncodingError(f'Invalid contenthash prefix: {e}') from e
  protocol_type = PROTOCOL_TYPES.get(code)
  if protocol_type is None:
    raise UnrecognizedEncodingError(f'Unrecognized contenthash codec 0x{code:x}')
  decoded = _DECODERS[code](data[consumed:])
  return DecodedContenthash(protocol_type, decoded)


def decode_contenthash(encoded: Union[bytes, str]) -> DecodedContenthash:
  """
  Decode contenthash bytes (or 0x hex) into (protocol_type, decoded).

  Never raises for bad input: failures are returned in `error`. An empty
  value decodes to all-None.
  """
  if isinstance(encoded, str):
    try:
      encoded = bytes.fromhex(encoded[2:] if encoded.startswith('0x') else encoded)
    except ValueError:
      return DecodedContenthash(None, None, f'Contenthash is not hex: {encoded!r}')
  if not encoded:
    return DecodedContenthash(None, None)
  try:
    return _decode_strict(bytes(encoded))
  except ContenthashError as e:
    return DecodedContenthash(None, None, str(e))


def is_valid_contenthash(text: str) -> bool:
  """True iff encode_contenthash would accept `text`."""
  try:
    encode_contenthash(text)
  except (ContenthashError, TypeError):
    return False
  return True


def is_empty_contenthash(value) -> bool:
  """'', '0x', b'' or any all-zero value clears the record."""
  if isinstance(value, str):
    stripped = value[2:] if value.startswith('0x') else value
    try:
      return not stripped or int(stripped, 16) == 0
    except ValueError:
      return False
  return not any(bytes(value))
