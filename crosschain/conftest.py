"""
Shared fixtures: in-memory stand-ins for signing chain clients.
"""

import pytest

from crosschain.artifacts import ContractArtifact
from crosschain.config import ChainDescriptor
from crosschain.errors import ContractError


def make_address(n: int) -> str:
    return '0x' + f'{n:040x}'


class FakeChainClient:
    """Records deployments and calls instead of talking to a node"""

    def __init__(self, descriptor, address_seed=0, balance_wei=10 ** 18, log=None):
        self.descriptor = descriptor
        self.address = make_address(0xabc)
        self.balance_wei = balance_wei
        self.address_seed = address_seed
        self.deployments = []
        self.calls = []
        self.reads = []
        self.fail_deploy = False
        self.fail_call = False
        self.read_values = {}
        self.log = log if log is not None else []

    def deploy(self, artifact, constructor_args):
        self.log.append(('deploy', self.descriptor.chain_id, artifact.name))
        if self.fail_deploy:
            raise ContractError(f"deploy {artifact.name} reverted on {self.descriptor.description}")
        self.deployments.append((artifact.name, tuple(constructor_args)))
        return make_address(self.address_seed + len(self.deployments))

    def call(self, address, abi, method, args, value=0):
        self.log.append(('call', self.descriptor.chain_id, method))
        if self.fail_call:
            raise ContractError(f"{method} reverted on {self.descriptor.description}")
        self.calls.append((address, method, list(args), value))
        return {'status': 1, 'blockNumber': 42, 'transactionHash': b'\x11' * 32}

    def read(self, address, abi, method, args):
        self.reads.append((address, method, list(args)))
        return self.read_values[method]

    def balance(self):
        return self.balance_wei


class FakeClientFactory:
    """Hands out one FakeChainClient per call, keyed by chain id"""

    def __init__(self):
        self.clients = {}
        self.created = []
        self.log = []

    def __call__(self, descriptor):
        client = FakeChainClient(descriptor, address_seed=descriptor.chain_id * 1000, log=self.log)
        self.clients[descriptor.chain_id] = client
        self.created.append(descriptor.chain_id)
        return client


@pytest.fixture
def sepolia():
    return ChainDescriptor(
        description="Ethereum Sepolia Testnet",
        chain_id=10002,
        rpc="https://sepolia.example/rpc",
        token_bridge=make_address(0x1001),
        relayer=make_address(0x1002),
        core_bridge=make_address(0x1003),
    )


@pytest.fixture
def celo():
    return ChainDescriptor(
        description="Celo Alfajores Testnet",
        chain_id=14,
        rpc="https://alfajores.example/rpc",
        token_bridge=make_address(0x2001),
        relayer=make_address(0x2002),
        core_bridge=make_address(0x2003),
    )


@pytest.fixture
def sender_artifact():
    return ContractArtifact(name='CrossChainTokenSender', abi=[], bytecode='0x6000')


@pytest.fixture
def receiver_artifact():
    return ContractArtifact(name='CrossChainTokenReceiver', abi=[], bytecode='0x6001')


@pytest.fixture
def client_factory():
    return FakeClientFactory()
