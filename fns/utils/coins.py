"""
Coin-type address codecs (SLIP-44 / ENSIP-9).

Resolvers store per-coin addresses as raw bytes. A CoinFormat maps a
symbolic key ('ETH', 'BTC', ...) to its coin type and the pair of
functions converting between the display string and those bytes.

  EVM chains     20-byte address <-> checksummed hex
  ONE            20-byte address <-> bech32 'one1...'
  BTC/LTC/DOGE   scriptPubKey <-> base58check (p2pkh, p2sh) or segwit bech32
"""
from dataclasses import dataclass
from typing import Callable, Optional

import base58
import bech32
from eth_utils import is_address, to_bytes, to_checksum_address

from fns.errors import UnknownCoinKeyError


@dataclass(frozen=True)
class CoinFormat:
  name: str
  coin_type: int
  encode: Callable[[bytes], str]
  decode: Callable[[str], bytes]


# ─────────────────────────────────────────────────────────────────────────────
# EVM hex
# ─────────────────────────────────────────────────────────────────────────────

def _encode_evm(data: bytes) -> str:
  return to_checksum_address(bytes(data))


def _decode_evm(address: str) -> bytes:
  if not is_address(address):
    raise ValueError(f'Invalid EVM address: {address!r}')
  return to_bytes(hexstr=address)


def evm_format(name: str, coin_type: int) -> CoinFormat:
  """CoinFormat for a chain using 20-byte hex addresses."""
  return CoinFormat(name, coin_type, _encode_evm, _decode_evm)


def evm_coin_type(chain_id: int) -> int:
  """ENSIP-11 coin type for an EVM chain id."""
  return 0x80000000 | chain_id


# ─────────────────────────────────────────────────────────────────────────────
# Plain bech32 (address bytes as the data part)
# ─────────────────────────────────────────────────────────────────────────────

def bech32_format(name: str, coin_type: int, hrp: str) -> CoinFormat:
  """CoinFormat for a chain using bech32 over the raw address bytes."""

  def encode(data: bytes) -> str:
    words = bech32.convertbits(bytes(data), 8, 5)
    return bech32.bech32_encode(hrp, words)

  def decode(address: str) -> bytes:
    prefix, words = bech32.bech32_decode(address)
    if prefix != hrp or words is None:
      raise ValueError(f'Invalid {name} address: {address!r}')
    data = bech32.convertbits(words, 5, 8, False)
    if data is None:
      raise ValueError(f'Invalid {name} address: {address!r}')
    return bytes(data)

  return CoinFormat(name, coin_type, encode, decode)


# ─────────────────────────────────────────────────────────────────────────────
# Bitcoin-style scriptPubKey
# ─────────────────────────────────────────────────────────────────────────────

def _p2pkh_script(hash160: bytes) -> bytes:
  return b'\x76\xa9\x14' + hash160 + b'\x88\xac'


def _p2sh_script(hash160: bytes) -> bytes:
  return b'\xa9\x14' + hash160 + b'\x87'


def _segwit_script(version: int, program: bytes) -> bytes:
  opcode = version + 0x50 if version else 0
  return bytes([opcode, len(program)]) + program


def bitcoin_format(
  name: str,
  coin_type: int,
  p2pkh: tuple,
  p2sh: tuple,
  hrp: Optional[str] = None,
) -> CoinFormat:
  """
  CoinFormat for a Bitcoin-derived chain.

  Args:
    p2pkh: accepted base58 version bytes for pay-to-pubkey-hash; the
           first one is used when encoding
    p2sh: same for pay-to-script-hash
    hrp: segwit bech32 prefix, None if the chain has no segwit
  """

  def encode(script: bytes) -> str:
    script = bytes(script)
    if len(script) == 25 and script[:3] == b'\x76\xa9\x14' and script[23:] == b'\x88\xac':
      return base58.b58encode_check(bytes([p2pkh[0]]) + script[3:23]).decode('ascii')
    if len(script) == 23 and script[:2] == b'\xa9\x14' and script[22] == 0x87:
      return base58.b58encode_check(bytes([p2sh[0]]) + script[2:22]).decode('ascii')
    if hrp and len(script) >= 4 and script[1] == len(script) - 2:
      opcode = script[0]
      if opcode == 0 or 0x51 <= opcode <= 0x60:
        version = opcode - 0x50 if opcode else 0
        address = bech32.encode(hrp, version, script[2:])
        if address:
          return address
    raise ValueError(f'Unrecognised {name} script: {script.hex()}')

  def decode(address: str) -> bytes:
    if hrp and address.lower().startswith(hrp + '1'):
      version, program = bech32.decode(hrp, address.lower())
      if version is None:
        raise ValueError(f'Invalid {name} segwit address: {address!r}')
      return _segwit_script(version, bytes(program))
    try:
      raw = base58.b58decode_check(address)
    except ValueError as e:
      raise ValueError(f'Invalid {name} address: {address!r}') from e
    if len(raw) != 21:
      raise ValueError(f'Invalid {name} address length: {address!r}')
    if raw[0] in p2pkh:
      return _p2pkh_script(raw[1:])
    if raw[0] in p2sh:
      return _p2sh_script(raw[1:])
    raise ValueError(f'Unknown {name} address version 0x{raw[0]:02x}')

  return CoinFormat(name, coin_type, encode, decode)


DEFAULT_FORMATS = (
  bitcoin_format('BTC', 0, p2pkh=(0x00,), p2sh=(0x05,), hrp='bc'),
  bitcoin_format('LTC', 2, p2pkh=(0x30,), p2sh=(0x32, 0x05), hrp='ltc'),
  bitcoin_format('DOGE', 3, p2pkh=(0x1e,), p2sh=(0x16,)),
  evm_format('ETH', 60),
  evm_format('ETC', 61),
  evm_format('FTM', 1007),
  bech32_format('ONE', 1023, 'one'),
)


class CoinRegistry:
  """Per-instance lookup table of CoinFormats, keyed by upper-case name."""

  def __init__(self, formats=DEFAULT_FORMATS):
    self._formats = {}
    for fmt in formats:
      self.register(fmt)

  def register(self, fmt: CoinFormat):
    self._formats[fmt.name.upper()] = fmt

  def lookup(self, key: str) -> CoinFormat:
    fmt: Optional[CoinFormat] = self._formats.get(key.upper())
    if fmt is None:
      raise UnknownCoinKeyError(
        f'Unknown coin key {key!r}. Available: {", ".join(sorted(self._formats))}'
      )
    return fmt

  def __contains__(self, key: str) -> bool:
    return key.upper() in self._formats
