import pytest

from fns.errors import MalformedPayloadError, UnsupportedSchemeError
from fns.utils.contents import (
  decode_contenthash,
  encode_contenthash,
  is_empty_contenthash,
  is_valid_contenthash,
)

SWARM_HASH = 'd1de9994b4d039f6548d191eb26786769f580809256b4685ef316805265ea162'


def test_ipfs_v0_comes_back_as_base32_v1():
  encoded = encode_contenthash('ipfs://QmTeW79w7QQ6Npa3b1d5tANreCDxF2iDaAPsDvW6KtLmfB')
  decoded = decode_contenthash(encoded)
  assert decoded.error is None
  assert decoded.protocol_type == 'ipfs'
  assert decoded.decoded == 'bafybeico3uuyj3vphxpvbowchdwjlrlrh62awxscrnii7w7flu5z6fk77y'


def test_ipfs_binary_layout():
  encoded = encode_contenthash('ipfs://QmRAQB6YaCyidP37UdDnjFY5vQuiBrcqdyoW1CuDgwxkD4')
  assert encoded.hex() == (
    'e3010170122029f2d17be6139079dc48696d1f582a8530eb9805b561eda517e22a892c7e3f1f'
  )


def test_ipfs_v1_and_path_form_encode_identically():
  v0 = encode_contenthash('ipfs://QmTeW79w7QQ6Npa3b1d5tANreCDxF2iDaAPsDvW6KtLmfB')
  v1 = encode_contenthash('ipfs://bafybeico3uuyj3vphxpvbowchdwjlrlrh62awxscrnii7w7flu5z6fk77y')
  path = encode_contenthash('/ipfs/QmTeW79w7QQ6Npa3b1d5tANreCDxF2iDaAPsDvW6KtLmfB')
  assert v0 == v1 == path


def test_swarm_round_trips_byte_for_byte():
  encoded = encode_contenthash(f'bzz://{SWARM_HASH}')
  assert encoded.hex() == 'e40101fa011b20' + SWARM_HASH
  decoded = decode_contenthash(encoded)
  assert decoded.protocol_type == 'bzz'
  assert decoded.decoded == SWARM_HASH
  assert decoded.uri == f'bzz://{SWARM_HASH}'


def test_decode_accepts_hex_strings():
  decoded = decode_contenthash('0xe40101fa011b20' + SWARM_HASH)
  assert decoded.uri == f'bzz://{SWARM_HASH}'


def test_onion():
  encoded = encode_contenthash('onion://zqktlwi4fecvo6ri')
  assert encoded.hex() == 'bc037a716b746c776934666563766f367269'
  assert decode_contenthash(encoded).uri == 'onion://zqktlwi4fecvo6ri'


def test_onion3_length_enforced():
  with pytest.raises(MalformedPayloadError):
    encode_contenthash('onion3://tooshort')


def test_unknown_scheme():
  with pytest.raises(UnsupportedSchemeError):
    encode_contenthash('foo://xyz')
  assert is_valid_contenthash('foo://xyz') is False


@pytest.mark.parametrize('text', [
  'ipfs://not-a-cid',
  'bzz://1234',
  'bzz://' + 'zz' * 32,
  'ipfs://',
  'ipfs://b',
  'ipfs://z',
  'ipfs://9',
  'ipns://b',
])
def test_malformed_payloads(text):
  with pytest.raises(MalformedPayloadError):
    encode_contenthash(text)
  assert is_valid_contenthash(text) is False


@pytest.mark.parametrize('text', ['', None, 'QmTeW79w7QQ6Npa3b1d5tANreCDxF2iDaAPsDvW6KtLmfB'])
def test_is_valid_never_raises(text):
  assert is_valid_contenthash(text) is False


def test_valid_uris():
  assert is_valid_contenthash('ipfs://QmTeW79w7QQ6Npa3b1d5tANreCDxF2iDaAPsDvW6KtLmfB')
  assert is_valid_contenthash(f'bzz://{SWARM_HASH}')


def test_unrecognized_codec_is_reported_not_raised():
  decoded = decode_contenthash(bytes.fromhex('aa01') + b'\x00' * 4)
  assert decoded.protocol_type is None
  assert 'Unrecognized contenthash codec' in decoded.error
  assert decoded.uri is None


def test_truncated_payload_is_reported_not_raised():
  decoded = decode_contenthash(bytes.fromhex('e40101fa011b20') + b'\x01')
  assert decoded.error


def test_empty_value_decodes_to_nothing():
  decoded = decode_contenthash(b'')
  assert (decoded.protocol_type, decoded.decoded, decoded.error) == (None, None, None)
  assert decode_contenthash('0x').protocol_type is None


def test_is_empty_contenthash():
  assert is_empty_contenthash('')
  assert is_empty_contenthash('0x')
  assert is_empty_contenthash('0x00')
  assert is_empty_contenthash(b'')
  assert not is_empty_contenthash('ipfs://QmTeW79w7QQ6Npa3b1d5tANreCDxF2iDaAPsDvW6KtLmfB')
