"""
Trust bootstrap between a deployed sender and receiver.

The receiver only accepts deliveries whose emitter matches the sender
registered for the source chain. Registering again for the same chain id
replaces the previous sender.
"""

import logging
from typing import Any, Callable, Dict, List

from web3 import Web3

from .chain_client import ChainClient
from .contracts import ReceiverContract, Registrable
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 20
WORD_LENGTH = 32


def zero_pad_address(address: str) -> bytes:
    """Right-align a 20-byte address in a 32-byte word (12 leading zero bytes)."""
    if not Web3.is_address(address):
        raise ConfigurationError(f"{address!r} is not a valid 20-byte address")
    raw = Web3.to_bytes(hexstr=address)
    if len(raw) != ADDRESS_LENGTH:
        raise ConfigurationError(f"{address!r} is not a valid 20-byte address")
    return raw.rjust(WORD_LENGTH, b'\x00')


class RegistrationService:
    """Registers a source-chain sender on a target-chain receiver"""

    def __init__(self, receiver_abi: List[Dict[str, Any]],
                 receiver_factory: Callable[[ChainClient, str, List[Dict[str, Any]]], Registrable] = ReceiverContract):
        self.receiver_abi = receiver_abi
        self.receiver_factory = receiver_factory

    def register_sender(self, receiver_address: str, target_signer: ChainClient,
                        source_chain_id: int, sender_address: str) -> Dict[str, Any]:
        sender_word = zero_pad_address(sender_address)
        receiver = self.receiver_factory(target_signer, receiver_address, self.receiver_abi)
        logger.info(
            f"Registering sender {sender_address} for chain {source_chain_id} "
            f"on receiver {receiver_address} ({target_signer.descriptor.description})"
        )
        receipt = receiver.set_registered_sender(source_chain_id, sender_word)
        logger.info(f"Sender registered as a valid sender on {target_signer.descriptor.description}")
        return receipt
