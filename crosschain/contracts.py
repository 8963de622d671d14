"""
Per-contract capability interfaces and their adapters over ChainClient.

Workflows depend on these protocols rather than on web3 contract objects, so
the named contract operations are selected in exactly one place.
"""

from typing import Any, Dict, List, Protocol, Sequence

from .chain_client import ChainClient


class Deployable(Protocol):
    def deploy(self, artifact, constructor_args: Sequence[Any]) -> str: ...


class Registrable(Protocol):
    def set_registered_sender(self, source_chain_id: int, sender: bytes) -> Dict[str, Any]: ...


class Sendable(Protocol):
    def quote_cross_chain_cost(self, target_chain_id: int) -> int: ...

    def send_message(self, target_chain_id: int, target_address: str,
                     payload: str, value: int) -> Dict[str, Any]: ...

    def balance(self) -> int: ...


class ReceiverContract:
    """Deployed receiver: accepts messages only from registered senders"""

    def __init__(self, client: ChainClient, address: str, abi: List[Dict[str, Any]]):
        self.client = client
        self.address = address
        self.abi = abi

    def set_registered_sender(self, source_chain_id: int, sender: bytes) -> Dict[str, Any]:
        return self.client.call(self.address, self.abi, 'setRegisteredSender', [source_chain_id, sender])


class SenderContract:
    """Deployed sender: quotes and pays for relayed deliveries"""

    def __init__(self, client: ChainClient, address: str, abi: List[Dict[str, Any]]):
        self.client = client
        self.address = address
        self.abi = abi

    def quote_cross_chain_cost(self, target_chain_id: int) -> int:
        return int(self.client.read(self.address, self.abi, 'quoteCrossChainCost', [target_chain_id]))

    def send_message(self, target_chain_id: int, target_address: str,
                     payload: str, value: int) -> Dict[str, Any]:
        return self.client.call(self.address, self.abi, 'sendMessage',
                                [target_chain_id, target_address, payload], value=value)

    def balance(self) -> int:
        return self.client.balance()
