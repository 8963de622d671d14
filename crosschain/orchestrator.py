#!/usr/bin/env python3
"""
Deployment sequencing for a sender/receiver contract pair.

Stages run strictly one after another, each blocking until the previous
on-chain result is confirmed:

    deploy sender (source) -> deploy receiver (target) -> record + save
        -> register sender on receiver -> save
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .artifacts import ContractArtifact
from .chain_client import ChainClient
from .config import ChainDescriptor, Settings
from .errors import ConfigurationError
from .registration import RegistrationService
from .registry import DeploymentRegistry

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ChainDescriptor], ChainClient]


def default_client_factory(settings: Settings) -> ClientFactory:
    """One signer per network, all sharing the operator key from settings."""
    private_key = settings.require_private_key()

    def factory(descriptor: ChainDescriptor) -> ChainClient:
        return ChainClient(descriptor, private_key, receipt_timeout=settings.receipt_timeout)

    return factory


@dataclass(frozen=True)
class DeployedPair:
    sender_address: str
    receiver_address: str


class DeploymentOrchestrator:
    """Deploys contracts in order and records captured addresses in the registry"""

    def __init__(self, registry: DeploymentRegistry, client_factory: ClientFactory):
        self.registry = registry
        self.client_factory = client_factory
        self._signers: Dict[int, ChainClient] = {}

    def signer_for(self, chain: ChainDescriptor) -> ChainClient:
        if chain.chain_id not in self._signers:
            self._signers[chain.chain_id] = self.client_factory(chain)
        return self._signers[chain.chain_id]

    def _deploy(self, chain: ChainDescriptor, artifact: ContractArtifact) -> str:
        logger.info(f"Deploying {artifact.name} on {chain.description}...")
        address = self.signer_for(chain).deploy(artifact, chain.infrastructure)
        logger.info(f"{artifact.name} on {chain.description}: {address}")
        return address

    def deploy_pair(self, source: ChainDescriptor, target: ChainDescriptor,
                    sender_artifact: ContractArtifact, receiver_artifact: ContractArtifact) -> DeployedPair:
        """
        Deploy the sender on the source chain, then the receiver on the target.

        Nothing is written to the registry here; a failure in either step
        aborts the whole operation.
        """
        sender_address = self._deploy(source, sender_artifact)
        receiver_address = self._deploy(target, receiver_artifact)
        return DeployedPair(sender_address=sender_address, receiver_address=receiver_address)

    def record_pair(self, source: ChainDescriptor, target: ChainDescriptor, pair: DeployedPair) -> None:
        self.registry.upsert(source.chain_id, {'sender_address': pair.sender_address},
                             network_label=source.description)
        self.registry.upsert(target.chain_id, {'receiver_address': pair.receiver_address},
                             network_label=target.description)
        self.registry.save()

    def deploy_sender(self, source: ChainDescriptor, sender_artifact: ContractArtifact) -> str:
        address = self._deploy(source, sender_artifact)
        self.registry.upsert(source.chain_id, {'sender_address': address}, network_label=source.description)
        self.registry.save()
        return address

    def deploy_receiver(self, target: ChainDescriptor, receiver_artifact: ContractArtifact) -> str:
        address = self._deploy(target, receiver_artifact)
        self.registry.upsert(target.chain_id, {'receiver_address': address}, network_label=target.description)
        self.registry.save()
        return address


def recorded_address(registry: DeploymentRegistry, chain: ChainDescriptor, role: str) -> str:
    """Look up a previously deployed sender or receiver address."""
    record = registry.get(chain.chain_id)
    address = getattr(record, f'{role}_address', None) if record else None
    if not address:
        raise ConfigurationError(
            f"No {role} contract recorded for {chain.description} (chain id {chain.chain_id}) "
            f"in {registry.path}. Deploy it first."
        )
    return address


class CrossChainDeployment:
    """Drives the full deploy-and-register pipeline"""

    def __init__(self, orchestrator: DeploymentOrchestrator, registration: RegistrationService):
        self.orchestrator = orchestrator
        self.registration = registration
        self.registry = orchestrator.registry

    def run(self, source: ChainDescriptor, target: ChainDescriptor,
            sender_artifact: ContractArtifact, receiver_artifact: ContractArtifact) -> DeployedPair:
        pair = self.orchestrator.deploy_pair(source, target, sender_artifact, receiver_artifact)
        # Persist before registering so the addresses survive a failed handshake.
        self.orchestrator.record_pair(source, target, pair)
        self.register(source, target, pair.sender_address, pair.receiver_address)
        logger.info("Deployment completed successfully!")
        return pair

    def register(self, source: ChainDescriptor, target: ChainDescriptor,
                 sender_address: Optional[str] = None, receiver_address: Optional[str] = None) -> Dict[str, Any]:
        """Register the sender on the receiver, defaulting to recorded addresses."""
        sender_address = sender_address or recorded_address(self.registry, source, 'sender')
        receiver_address = receiver_address or recorded_address(self.registry, target, 'receiver')
        receipt = self.registration.register_sender(
            receiver_address, self.orchestrator.signer_for(target), source.chain_id, sender_address
        )
        self.registry.save()
        return receipt

    def deploy_receiver(self, target: ChainDescriptor, receiver_artifact: ContractArtifact,
                        source: Optional[ChainDescriptor] = None) -> str:
        """Deploy a receiver and, given a source chain, trust its recorded sender."""
        sender_address = recorded_address(self.registry, source, 'sender') if source else None
        receiver_address = self.orchestrator.deploy_receiver(target, receiver_artifact)
        if source is not None:
            self.register(source, target, sender_address, receiver_address)
        return receiver_address
