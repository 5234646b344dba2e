"""
Transaction signer.

Every state-changing call goes through Signer.submit: build the
transaction with a fixed gas limit, sign it locally with the configured
key, broadcast it, and hand back a PendingTransaction the caller can await.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from web3 import Web3

from fns.config import settings
from fns.errors import CollaboratorError

logger = logging.getLogger('fns')


@dataclass
class PendingTransaction:
  """A broadcast transaction. `await tx.wait()` for its receipt."""

  w3: Any
  tx_hash: str

  async def wait(self, timeout: float = 120):
    """
    Wait for the receipt.

    Raises:
      CollaboratorError: if the receipt never arrives or the tx reverted
    """
    try:
      receipt = await self.w3.eth.wait_for_transaction_receipt(self.tx_hash, timeout=timeout)
    except Exception as e:
      raise CollaboratorError(f'No receipt for {self.tx_hash}: {e}') from e
    if receipt['status'] != 1:
      raise CollaboratorError(f'Transaction {self.tx_hash} reverted')
    return receipt


class Signer:
  """Signs and sends transactions from a single local account."""

  def __init__(self, w3, private_key: Optional[str] = None, gas: Optional[int] = None):
    private_key = private_key or settings.PRIVATE_KEY
    if not private_key:
      raise ValueError('FNS_PRIVATE_KEY not configured')
    self.w3 = w3
    self.account = Account.from_key(private_key)
    self.gas = gas or settings.TX_GAS

  @property
  def address(self) -> str:
    return self.account.address

  async def submit(self, fn, label: str, gas: Optional[int] = None) -> PendingTransaction:
    """
    Build, sign and send a contract call.

    Args:
      fn: Bound contract function (e.g. contract.functions.setOwner(node, a))
      label: Human-readable call name for logs and errors
      gas: Gas limit override (default settings.TX_GAS)

    Returns:
      PendingTransaction for the broadcast tx

    Raises:
      CollaboratorError: if building, signing or sending fails
    """
    try:
      chain_id = await self.w3.eth.chain_id
      tx = await fn.build_transaction({
        'from': self.address,
        'nonce': await self.w3.eth.get_transaction_count(self.address),
        'gas': gas or self.gas,
        'gasPrice': await self.w3.eth.gas_price,
        'chainId': chain_id,
      })
      signed = self.account.sign_transaction(tx)
      tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
    except Exception as e:
      logger.error(f'send_tx({label}) failed: {e}')
      raise CollaboratorError(f'{label} transaction failed: {e}') from e

    tx_hash = Web3.to_hex(tx_hash)
    logger.info(f'send_tx({label}) tx={tx_hash} chain={chain_id}')
    return PendingTransaction(self.w3, tx_hash)
