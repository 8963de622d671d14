"""
Signing chain client over web3.

Exposes the three primitives the deployment workflows are built on:
deploy(artifact, args) -> address, call(...) -> receipt and read(...) -> value.
Client-library failures are translated into the run's error taxonomy here and
nowhere else.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional, Sequence

import requests
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from .artifacts import ContractArtifact
from .config import ChainDescriptor
from .errors import (
    ContractError,
    CredentialError,
    DeploymentError,
    FundsError,
    NetworkError,
)

logger = logging.getLogger(__name__)


def is_insufficient_funds(error: Exception) -> bool:
    return 'insufficient funds' in str(error).lower()


@contextmanager
def rpc_errors(action: str, chain: str):
    """Translate client-library exceptions raised while performing `action`."""
    try:
        yield
    except DeploymentError:
        raise
    except TimeExhausted as e:
        raise NetworkError(f"Timed out waiting for {action} on {chain}: {e}") from e
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Network connection to {chain} failed during {action}. "
                           f"Check the RPC URL and your connection: {e}") from e
    except ContractLogicError as e:
        raise ContractError(f"{action} reverted on {chain}: {e}") from e
    except (Web3Exception, ValueError) as e:
        if is_insufficient_funds(e):
            raise FundsError(f"Insufficient funds for {action} on {chain}. "
                             f"Make sure the wallet can cover the gas fees.") from e
        raise ContractError(f"{action} failed on {chain}: {e}") from e


class PendingTransaction:
    """A submitted transaction that has not been confirmed yet"""

    def __init__(self, client: 'ChainClient', tx_hash: bytes, action: str):
        self.client = client
        self.tx_hash = tx_hash
        self.action = action

    @property
    def hash_hex(self) -> str:
        value = self.tx_hash.hex()
        return value if value.startswith('0x') else '0x' + value

    def wait(self) -> Dict[str, Any]:
        """Block until inclusion; a reverted receipt is a ContractError."""
        chain = self.client.descriptor.description
        with rpc_errors(self.action, chain):
            receipt = self.client.w3.eth.wait_for_transaction_receipt(
                self.tx_hash, timeout=self.client.receipt_timeout
            )
        if receipt['status'] != 1:
            raise ContractError(f"{self.action} transaction {self.hash_hex} reverted on {chain}")
        logger.info(f"{self.action} confirmed in block {receipt['blockNumber']} on {chain}")
        return receipt


class ChainClient:
    """Web3 connection plus a signer bound to one network"""

    def __init__(self, descriptor: ChainDescriptor, private_key: str,
                 receipt_timeout: int = 300, w3: Optional[Web3] = None):
        self.descriptor = descriptor
        self.receipt_timeout = receipt_timeout
        self.w3 = w3 if w3 is not None else self._connect(descriptor)
        self._private_key = private_key
        try:
            self.account = self.w3.eth.account.from_key(private_key)
        except ValueError as e:
            raise CredentialError(f"PRIVATE_KEY is not a valid signing key: {e}") from e

    @staticmethod
    def _connect(descriptor: ChainDescriptor) -> Web3:
        w3 = Web3(Web3.HTTPProvider(descriptor.rpc, request_kwargs={'timeout': 30}))
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        if not w3.is_connected():
            raise NetworkError(f"Could not connect to {descriptor.description} at {descriptor.rpc}")
        logger.info(f"Connected to {descriptor.description} at {descriptor.rpc}")
        return w3

    @property
    def address(self) -> str:
        return self.account.address

    def balance(self) -> int:
        with rpc_errors('balance lookup', self.descriptor.description):
            return self.w3.eth.get_balance(self.address)

    def contract(self, address: str, abi):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def submit(self, transaction, action: str, value: int = 0) -> PendingTransaction:
        """
        Build, fund-check, sign and send a transaction.

        Args:
            transaction: web3 contract function or constructor call
            action: Human-readable label used in logs and errors
            value: Native amount in wei attached to the call

        Returns:
            PendingTransaction for the submitted hash
        """
        chain = self.descriptor.description
        with rpc_errors(action, chain):
            tx = transaction.build_transaction({
                'from': self.address,
                'nonce': self.w3.eth.get_transaction_count(self.address, 'pending'),
                'gasPrice': self.w3.eth.gas_price,
                'value': value,
            })
            required = tx['gas'] * tx['gasPrice'] + value
            balance = self.w3.eth.get_balance(self.address)
            if balance < required:
                raise FundsError(
                    f"Insufficient funds for {action} on {chain}: balance {Web3.from_wei(balance, 'ether')} "
                    f"is below the required {Web3.from_wei(required, 'ether')}"
                )
            signed_tx = self.w3.eth.account.sign_transaction(tx, self._private_key)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        pending = PendingTransaction(self, tx_hash, action)
        logger.info(f"{action} transaction sent on {chain}: {pending.hash_hex}")
        return pending

    def deploy(self, artifact: ContractArtifact, constructor_args: Sequence[Any]) -> str:
        """Deploys the artifact and returns the new contract address."""
        factory = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.require_bytecode())
        action = f"deploy {artifact.name}"
        receipt = self.submit(factory.constructor(*constructor_args), action).wait()
        address = receipt.get('contractAddress')
        if not address:
            raise ContractError(
                f"{artifact.name} deployment on {self.descriptor.description} was confirmed "
                f"but no contract address is available"
            )
        return Web3.to_checksum_address(address)

    def call(self, address: str, abi, method: str, args: Sequence[Any], value: int = 0) -> Dict[str, Any]:
        """State-mutating call; returns the confirmed receipt."""
        with rpc_errors(method, self.descriptor.description):
            function = getattr(self.contract(address, abi).functions, method)(*args)
        return self.submit(function, method, value=value).wait()

    def read(self, address: str, abi, method: str, args: Sequence[Any]) -> Any:
        with rpc_errors(method, self.descriptor.description):
            function = getattr(self.contract(address, abi).functions, method)
            return function(*args).call()
