"""Chain-state capability and its eth-ape backed implementation."""

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ChainStateProvider(Protocol):
    """
    Read-only view of chain state supplied by the connected wallet.

    Methods
    -------
    get_balance(address)
        Native balance of an address in wei
    call(contract_address, abi, method, *args)
        Call a view method on a contract
    list_accounts()
        Accounts authorized by the connected wallet

    """

    async def get_balance(self, address: str) -> int:
        """Get the native balance of ``address`` in wei."""
        ...

    async def call(self, contract_address: str, abi: list[dict], method: str, *args: Any) -> Any:
        """Call the read-only ``method`` of a contract."""
        ...

    async def list_accounts(self) -> list[str]:
        """List the addresses authorized by the connected wallet."""
        ...


class ApeChainState:
    """
    Chain-state provider using Ape's network management system.

    Ape picks up RPC credentials from its own environment variables
    (e.g. ``WEB3_INFURA_PROJECT_ID``). Ape calls block, so each one runs in a
    worker thread to keep the event loop free.

    Parameters
    ----------
    chain : str
        Ecosystem name (e.g., 'ethereum')
    network : str
        Network name (default: 'mainnet')

    """

    def __init__(self, chain: str = "ethereum", network: str = "mainnet") -> None:
        self.chain = chain
        self.network = network
        self._network_context: Any = None
        self._provider: Any = None

    def connect(self) -> None:
        """Connect to the network using Ape's network management."""
        try:
            from ape import networks

            network_choice = f"{self.chain}:{self.network}"
            self._network_context = networks.parse_network_choice(network_choice)
            self._network_context.__enter__()
            self._provider = networks.provider
        except Exception as e:
            msg = f"Failed to connect to {self.chain}:{self.network}: {e}"
            raise RuntimeError(msg) from e

    def disconnect(self) -> None:
        """Disconnect from the network."""
        if self._network_context:
            try:
                self._network_context.__exit__(None, None, None)
            except Exception as e:
                logger.debug("Error during network context cleanup: %s", e)
            self._network_context = None
        self._provider = None

    def _require_provider(self) -> Any:
        if not self._provider:
            msg = "Provider not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._provider

    async def get_balance(self, address: str) -> int:
        """
        Get the native balance of an address.

        Parameters
        ----------
        address : str
            Account address

        Returns
        -------
        int
            Balance in wei

        """
        provider = self._require_provider()
        return int(await asyncio.to_thread(provider.get_balance, address))

    async def call(self, contract_address: str, abi: list[dict], method: str, *args: Any) -> Any:
        """
        Call a read-only contract method.

        Parameters
        ----------
        contract_address : str
            Target contract address
        abi : list[dict]
            ABI fragment describing at least ``method``
        method : str
            Method name (e.g., 'balanceOf')
        *args : Any
            Method arguments

        Returns
        -------
        Any
            Decoded call result

        Raises
        ------
        RuntimeError
            If the provider is not connected or the call fails

        """
        self._require_provider()

        def _call() -> Any:
            from ape import Contract

            contract = Contract(contract_address, abi=abi)
            return getattr(contract, method)(*args)

        try:
            return await asyncio.to_thread(_call)
        except Exception as e:
            msg = f"Contract call {method} on {contract_address} failed: {e}"
            raise RuntimeError(msg) from e

    async def list_accounts(self) -> list[str]:
        """
        List the accounts known to Ape's account manager.

        Returns
        -------
        list[str]
            Account addresses, possibly empty

        """
        self._require_provider()

        def _addresses() -> list[str]:
            from ape import accounts

            return [str(account.address) for account in accounts]

        return await asyncio.to_thread(_addresses)

    def __enter__(self) -> "ApeChainState":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.disconnect()
