"""
Cross-chain message sending through a deployed sender contract.

Only reads the deployment registry; never writes it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3

from .config import ChainDescriptor, Settings
from .contracts import SenderContract, Sendable
from .errors import ConfigurationError, FundsError
from .orchestrator import ClientFactory, recorded_address
from .registry import DeploymentRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentMessage:
    tx_hash: str
    cost: int
    explorer_url: str


def format_hash(value) -> str:
    text = value.hex() if isinstance(value, (bytes, bytearray)) else str(value)
    return text if text.startswith('0x') else '0x' + text


class MessagingClient:
    """Quotes and submits one payload delivery from a source chain's sender"""

    def __init__(self, settings: Settings, registry: DeploymentRegistry, source: ChainDescriptor,
                 client_factory: ClientFactory, sender_abi: List[Dict[str, Any]],
                 sender_factory: Callable[..., Sendable] = SenderContract):
        self.settings = settings
        self.registry = registry
        self.source = source
        self.sender_address = recorded_address(registry, source, 'sender')
        self.sender = sender_factory(client_factory(source), self.sender_address, sender_abi)

    def quote_cost(self, target_chain_id: int) -> int:
        """Read-only estimate, in wei, of relaying one message to target_chain_id."""
        cost = self.sender.quote_cross_chain_cost(target_chain_id)
        logger.info(f"Transaction cost: {Web3.from_wei(cost, 'ether')} ETH")
        return cost

    def send(self, target_chain_id: int, target_address: str, payload: str,
             value: Optional[int] = None) -> SentMessage:
        """
        Send `payload` to `target_address` on the target chain.

        Args:
            target_chain_id: Protocol chain id of the destination
            target_address: Receiver contract on the destination chain
            payload: Message text
            value: Delivery fee in wei; quoted when omitted

        Raises:
            FundsError: Balance below the attached value; nothing is sent
        """
        if not Web3.is_address(target_address):
            raise ConfigurationError(f"{target_address!r} is not a valid target address")
        if value is None:
            value = self.quote_cost(target_chain_id)

        balance = self.sender.balance()
        if balance < value:
            raise FundsError(
                f"Wallet balance {Web3.from_wei(balance, 'ether')} ETH on {self.source.description} "
                f"is below the quoted delivery cost {Web3.from_wei(value, 'ether')} ETH"
            )

        logger.info(f'Sending message: "{payload}"')
        logger.info(f"From {self.source.description} ({self.sender_address}) to chain {target_chain_id} ({target_address})")
        receipt = self.sender.send_message(target_chain_id, Web3.to_checksum_address(target_address), payload, value)
        tx_hash = format_hash(receipt['transactionHash'])
        explorer_url = self.settings.explorer_link(tx_hash)
        logger.info(f"Message sent successfully! Transaction hash: {tx_hash}")
        logger.info(f"Track the transaction at {explorer_url}")
        return SentMessage(tx_hash=tx_hash, cost=value, explorer_url=explorer_url)

    def send_to_chain(self, target: ChainDescriptor, payload: str) -> SentMessage:
        """Send to the receiver recorded for `target`."""
        return self.send(target.chain_id, recorded_address(self.registry, target, 'receiver'), payload)
