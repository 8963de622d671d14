import os
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract: interface description plus deployable bytecode"""
    name: str
    abi: List[Dict[str, Any]]
    bytecode: Optional[str] = None

    def require_bytecode(self) -> str:
        if not self.bytecode:
            raise ConfigurationError(f"Artifact {self.name} has no bytecode and cannot be deployed")
        return self.bytecode


def _extract_bytecode(data: Dict[str, Any]) -> Optional[str]:
    # Foundry nests the hex under "object", Hardhat stores it directly.
    bytecode = data.get('bytecode')
    if isinstance(bytecode, dict):
        bytecode = bytecode.get('object')
    if not bytecode or bytecode == '0x':
        return None
    return bytecode if bytecode.startswith('0x') else '0x' + bytecode


def load_artifact(file_path: str, require_bytecode: bool = True) -> ContractArtifact:
    """Loads a contract ABI and bytecode from its JSON artifact."""
    try:
        with open(file_path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Contract artifact not found at {file_path}. Compile the contracts first.")
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read contract artifact {file_path}: {e}")

    if not isinstance(data, dict) or not isinstance(data.get('abi'), list):
        raise ConfigurationError(f"Contract artifact {file_path} has no 'abi' list")

    artifact = ContractArtifact(
        name=os.path.splitext(os.path.basename(file_path))[0],
        abi=data['abi'],
        bytecode=_extract_bytecode(data),
    )
    if require_bytecode:
        artifact.require_bytecode()
    return artifact
