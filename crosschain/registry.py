"""
Deployment registry: which contracts have been deployed on which chain.

The persisted file is a JSON object keyed by protocol chain id. Records are
merged, never replaced, so a chain that played the sender role in one run and
the receiver role in another keeps both addresses.
"""

import os
import json
import logging
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from .errors import PersistenceError

logger = logging.getLogger(__name__)

RECORD_FIELDS = {
    'network_label': 'networkName',
    'sender_address': 'CrossChainSender',
    'receiver_address': 'CrossChainReceiver',
    'last_deployed_at': 'deployedAt',
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class DeploymentRecord:
    """Deployment state for one chain; sender and receiver populate independently"""
    network_label: Optional[str]
    last_deployed_at: Optional[str]
    sender_address: Optional[str] = None
    receiver_address: Optional[str] = None
    # persisted object as loaded; keeps unknown keys and key order
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'DeploymentRecord':
        return cls(
            network_label=data.get('networkName'),
            last_deployed_at=data.get('deployedAt'),
            sender_address=data.get('CrossChainSender'),
            receiver_address=data.get('CrossChainReceiver'),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Loaded keys keep their position; keys set since are appended."""
        data: Dict[str, Any] = dict(self.raw)
        for name in ('network_label', 'sender_address', 'receiver_address', 'last_deployed_at'):
            value = getattr(self, name)
            if value is not None:
                data[RECORD_FIELDS[name]] = value
        return data


class DeploymentRegistry:
    """Durable mapping of protocol chain id to DeploymentRecord"""

    def __init__(self, path: str, clock: Callable[[], str] = utc_timestamp):
        self.path = path
        self.clock = clock
        self.records: Dict[int, DeploymentRecord] = {}
        self.trailing_newline = True

    def load(self) -> Dict[int, DeploymentRecord]:
        """Read the persisted registry; a missing file is an empty registry."""
        if not os.path.exists(self.path):
            logger.info(f"No deployment registry at {self.path}, starting empty")
            self.records = {}
            return self.records
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                text = f.read()
            data = json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read deployment registry {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Deployment registry {self.path} must contain a JSON object")
        self.trailing_newline = text.endswith('\n')

        records = {}
        for key, value in data.items():
            try:
                chain_id = int(key)
            except ValueError:
                raise PersistenceError(f"Deployment registry {self.path} has non-numeric chain id {key!r}")
            if not isinstance(value, dict):
                raise PersistenceError(f"Deployment record for chain {key} in {self.path} is not an object")
            records[chain_id] = DeploymentRecord.from_dict(value)
        self.records = records
        return self.records

    def get(self, chain_id: int) -> Optional[DeploymentRecord]:
        return self.records.get(chain_id)

    def upsert(self, chain_id: int, patch: Mapping[str, Any], network_label: Optional[str] = None) -> DeploymentRecord:
        """
        Merge patch fields into the chain's record, creating it if needed.

        Args:
            chain_id: Protocol chain id the record is keyed by
            patch: Any of sender_address, receiver_address, network_label
            network_label: Label used when the record has to be created

        Returns:
            The merged record, with last_deployed_at refreshed
        """
        unknown = set(patch) - set(RECORD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown deployment record fields: {sorted(unknown)}")

        now = self.clock()
        record = self.records.get(chain_id)
        if record is None:
            record = DeploymentRecord(network_label=network_label or str(chain_id), last_deployed_at=now)
            self.records[chain_id] = record
        elif record.network_label is None and network_label:
            record.network_label = network_label
        for name, value in patch.items():
            if value is not None:
                setattr(record, name, value)
        record.last_deployed_at = now
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {str(chain_id): record.to_dict() for chain_id, record in self.records.items()}

    def save(self) -> None:
        """Rewrite the whole registry file through a temp file and rename."""
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.contracts-', suffix='.json', dir=directory)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(json.dumps(self.to_dict(), indent=2, ensure_ascii=False))
                if self.trailing_newline:
                    f.write('\n')
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Could not write deployment registry {self.path}: {e}") from e
        logger.info(f"Deployment registry saved to {self.path}")
