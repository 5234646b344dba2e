import pytest
from web3 import Web3

from fns.errors import InvalidNameError
from fns.utils.namehash import (
  ROOT_NODE,
  decode_labelhash,
  encode_labelhash,
  is_encoded_labelhash,
  labelhash,
  namehash,
  namehash_from_parent,
  reverse_name,
  split_name,
  validate_name,
)


def test_root_is_zero_node():
  assert namehash('') == ROOT_NODE == b'\x00' * 32


def test_known_vectors():
  assert Web3.to_hex(namehash('eth')) == (
    '0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae'
  )
  assert Web3.to_hex(namehash('foo.eth')) == (
    '0xde9b09fd7c5f901e23a3f19fecc54828e9c848539801e86591bd9801b019f84f'
  )
  assert Web3.to_hex(labelhash('eth')) == (
    '0x4f5b812789fc606be1b3b16908db13fc7a9adf7ca72641f84d75b47069d3d7f0'
  )


def test_case_insensitive():
  assert namehash('Vitalik.ONE') == namehash('vitalik.one')
  assert labelhash('Alice') == labelhash('alice')


def test_child_from_parent_matches_full_hash():
  assert namehash('sub.vitalik.one') == namehash_from_parent(
    namehash('vitalik.one'), labelhash('sub')
  )
  # hex inputs are accepted too
  assert namehash('sub.vitalik.one') == namehash_from_parent(
    Web3.to_hex(namehash('vitalik.one')), Web3.to_hex(labelhash('sub'))
  )


def test_validate_name_lowercases():
  assert validate_name('vitalik') == 'vitalik'
  assert validate_name('Vitalik') == 'vitalik'
  assert validate_name('Vitalik.one') == 'vitalik.one'
  assert validate_name('sub.Vitalik.one') == 'sub.vitalik.one'


@pytest.mark.parametrize('name, char', [
  ('$vitalik', '$'),
  ('#vitalik', '#'),
  ('vitalik ', ' '),
  ('sub.vit@lik.one', '@'),
])
def test_illegal_chars_are_named(name, char):
  with pytest.raises(InvalidNameError) as exc:
    namehash(name)
  assert str(exc.value) == f'Illegal char {char}'


def test_empty_labels_rejected():
  with pytest.raises(InvalidNameError, match='empty labels'):
    validate_name('vitalik..one')
  with pytest.raises(InvalidNameError, match='empty labels'):
    namehash('.one')


def test_encoded_labelhash_hashes_to_carried_hash():
  encoded = encode_labelhash(labelhash('sub'))
  assert is_encoded_labelhash(encoded)
  assert decode_labelhash(encoded) == labelhash('sub')
  assert namehash(f'{encoded}.vitalik.one') == namehash('sub.vitalik.one')


def test_is_encoded_labelhash_rejects_lookalikes():
  assert not is_encoded_labelhash('[abc]')
  assert not is_encoded_labelhash('[' + 'z' * 64 + ']')
  assert not is_encoded_labelhash('vitalik')


def test_split_and_reverse_names():
  assert split_name('sub.vitalik.one') == ('sub', 'vitalik.one')
  assert split_name('one') == ('one', '')
  assert reverse_name('0xAbC0000000000000000000000000000000000001') == (
    'abc0000000000000000000000000000000000001.addr.reverse'
  )
