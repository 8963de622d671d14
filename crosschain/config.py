"""
Run configuration and chain descriptors.

The environment (including any .env file) is read exactly once, by
load_settings(). The resulting Settings value is handed to every component
that needs it.
"""

import os
import re
import json
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError, CredentialError

logger = logging.getLogger(__name__)

DEFAULT_CHAINS_PATH = os.path.join('deploy-config', 'chains.json')
DEFAULT_REGISTRY_PATH = os.path.join('deploy-config', 'contracts.json')
DEFAULT_SENDER_ARTIFACT = os.path.join('out', 'CrossChainTokenSender.sol', 'CrossChainTokenSender.json')
DEFAULT_RECEIVER_ARTIFACT = os.path.join('out', 'CrossChainTokenReceiver.sol', 'CrossChainTokenReceiver.json')
DEFAULT_EXPLORER_URL = "https://wormholescan.io/#/tx/{tx_hash}?network=TESTNET"

# Placeholder names are upper-case words joined by single underscores.
_NAME = r'[A-Z0-9]+(?:_[A-Z0-9]+)*'
# At each position the double-underscore form is tried first.
PLACEHOLDER = re.compile(r'__(' + _NAME + r')__|_(' + _NAME + r')_')

# Placeholders that can be built from another binding when not bound directly.
ENDPOINT_TEMPLATES = {
    'SEPOLIA_RPC': ('THIRDWEB_CLIENT_ID', "https://11155111.rpc.thirdweb.com/{value}"),
}


@dataclass(frozen=True)
class Settings:
    """Explicit run configuration built once at startup"""
    private_key: Optional[str] = None
    chains_path: str = DEFAULT_CHAINS_PATH
    registry_path: str = DEFAULT_REGISTRY_PATH
    sender_artifact: str = DEFAULT_SENDER_ARTIFACT
    receiver_artifact: str = DEFAULT_RECEIVER_ARTIFACT
    receipt_timeout: int = 300
    log_file: Optional[str] = 'crosschain_deploy.log'
    log_level: str = 'INFO'
    explorer_url: str = DEFAULT_EXPLORER_URL
    bindings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def require_private_key(self) -> str:
        if not self.private_key or not self.private_key.strip():
            raise CredentialError("PRIVATE_KEY not found in environment or .env file")
        return self.private_key.strip()

    def explorer_link(self, tx_hash: str) -> str:
        return self.explorer_url.format(tx_hash=tx_hash)


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> Settings:
    """
    Build Settings from the process environment.

    Args:
        env: Mapping to read instead of os.environ (no .env loading happens then)
        dotenv_path: Explicit .env file; by default python-dotenv searches for one

    Returns:
        Frozen Settings carrying a snapshot of the bindings
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ
    bindings = dict(env)

    timeout_text = bindings.get('RECEIPT_TIMEOUT', '300')
    try:
        receipt_timeout = int(timeout_text)
    except ValueError:
        raise ConfigurationError(f"RECEIPT_TIMEOUT must be an integer number of seconds, got {timeout_text!r}")

    return Settings(
        private_key=bindings.get('PRIVATE_KEY'),
        chains_path=bindings.get('CHAINS_CONFIG', DEFAULT_CHAINS_PATH),
        registry_path=bindings.get('DEPLOYED_CONTRACTS', DEFAULT_REGISTRY_PATH),
        sender_artifact=bindings.get('SENDER_ARTIFACT', DEFAULT_SENDER_ARTIFACT),
        receiver_artifact=bindings.get('RECEIVER_ARTIFACT', DEFAULT_RECEIVER_ARTIFACT),
        receipt_timeout=receipt_timeout,
        log_file=bindings.get('LOG_FILE', 'crosschain_deploy.log') or None,
        log_level=bindings.get('LOG_LEVEL', 'INFO').upper(),
        explorer_url=bindings.get('EXPLORER_TX_URL', DEFAULT_EXPLORER_URL),
        bindings=MappingProxyType(bindings),
    )


@dataclass(frozen=True)
class ChainDescriptor:
    """One network's endpoint and bridge infrastructure addresses"""
    description: str
    chain_id: int
    rpc: str
    token_bridge: str
    relayer: str
    core_bridge: str

    @classmethod
    def from_dict(cls, data: Dict, source: str = 'chains config') -> 'ChainDescriptor':
        try:
            return cls(
                description=str(data['description']),
                chain_id=int(data['chainId']),
                rpc=str(data['rpc']),
                token_bridge=str(data['tokenBridge']),
                relayer=str(data['wormholeRelayer']),
                core_bridge=str(data['wormhole']),
            )
        except KeyError as e:
            raise ConfigurationError(f"Chain entry in {source} is missing field {e.args[0]!r}: {data}")
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Chain entry in {source} is malformed ({e}): {data}")

    def to_dict(self) -> Dict:
        return {
            'description': self.description,
            'chainId': self.chain_id,
            'rpc': self.rpc,
            'tokenBridge': self.token_bridge,
            'wormholeRelayer': self.relayer,
            'wormhole': self.core_bridge,
        }

    @property
    def infrastructure(self):
        """Constructor arguments shared by the sender and receiver contracts"""
        return (self.relayer, self.token_bridge, self.core_bridge)


def has_unresolved_placeholder(rpc: str) -> bool:
    return '__' in rpc or '_RPC_' in rpc


class ConfigResolver:
    """Substitutes environment-bound placeholder tokens in RPC endpoints"""

    def __init__(self, bindings: Mapping[str, str]):
        self.bindings = bindings

    def lookup(self, name: str) -> Optional[str]:
        if name in self.bindings:
            return self.bindings[name]
        template = ENDPOINT_TEMPLATES.get(name)
        if template is not None:
            source_name, pattern = template
            value = self.bindings.get(source_name)
            if value:
                return pattern.format(value=value)
        return None

    def resolve_endpoint(self, rpc: str) -> str:
        """
        Replace `__NAME__` and `_NAME_` tokens with their bindings.

        Tokens are matched in one pass over the original text, so substituted
        values are never scanned again. Unbound tokens are left in place; a
        bound empty value substitutes the empty string.
        """
        def substitute(match):
            value = self.lookup(match.group(1) or match.group(2))
            return match.group(0) if value is None else value

        return PLACEHOLDER.sub(substitute, rpc)

    def resolve(self, descriptors: List[ChainDescriptor]) -> List[ChainDescriptor]:
        resolved = []
        for descriptor in descriptors:
            rpc = self.resolve_endpoint(descriptor.rpc)
            if rpc != descriptor.rpc:
                logger.debug(f"Resolved RPC placeholders for {descriptor.description}")
            resolved.append(replace(descriptor, rpc=rpc))
        return resolved


def read_chains(path: str) -> List[ChainDescriptor]:
    """Loads the ordered chain descriptor list from its JSON file."""
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Chain configuration not found at {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read chain configuration {path}: {e}")

    chains = data.get('chains') if isinstance(data, dict) else None
    if not isinstance(chains, list):
        raise ConfigurationError(f"Chain configuration {path} must contain a 'chains' list")
    return [ChainDescriptor.from_dict(entry, source=path) for entry in chains]


def load_chains(settings: Settings) -> List[ChainDescriptor]:
    descriptors = read_chains(settings.chains_path)
    logger.info(f"Loaded {len(descriptors)} chain descriptors from {settings.chains_path}")
    return ConfigResolver(settings.bindings).resolve(descriptors)
