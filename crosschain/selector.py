import logging
from typing import Callable, List, Optional

from .config import ChainDescriptor, has_unresolved_placeholder
from .errors import ConfigurationError, SelectionError

logger = logging.getLogger(__name__)


class ChainSelector:
    """Picks one chain descriptor by 1-based ordinal"""

    def __init__(self, descriptors: List[ChainDescriptor]):
        self.descriptors = descriptors

    def options(self) -> List[str]:
        return [f"{index}: {chain.description}" for index, chain in enumerate(self.descriptors, start=1)]

    def select(self, ordinal: int, role: str = 'source') -> ChainDescriptor:
        """
        Return the descriptor at `ordinal` after checking its endpoint.

        Raises:
            SelectionError: ordinal outside [1, len(descriptors)]
            ConfigurationError: the endpoint still holds a placeholder
        """
        if not 1 <= ordinal <= len(self.descriptors):
            raise SelectionError(
                f"Invalid {role} chain selection {ordinal}: choose between 1 and {len(self.descriptors)}"
            )
        chain = self.descriptors[ordinal - 1]
        if has_unresolved_placeholder(chain.rpc):
            raise ConfigurationError(
                f"RPC URL for {chain.description} was not resolved: {chain.rpc}. "
                f"Please check your environment variables."
            )
        logger.info(f"Selected {role} chain: {chain.description} (chain id {chain.chain_id})")
        return chain

    def prompt(self, role: str, ordinal: Optional[int] = None,
               input_fn: Callable[[str], str] = input,
               print_fn: Callable[[str], None] = print) -> ChainDescriptor:
        """Select by the given ordinal, or ask for one on the terminal."""
        if ordinal is None:
            print_fn(f"\nSelect the {role.upper()} chain:")
            for line in self.options():
                print_fn(line)
            try:
                answer = input_fn(f"\nEnter the number for the {role.upper()} chain: ").strip()
            except EOFError:
                raise SelectionError(f"No {role} chain selected: input closed")
            try:
                ordinal = int(answer)
            except ValueError:
                raise SelectionError(f"Invalid {role} chain selection {answer!r}: not a number")
        return self.select(ordinal, role)
