"""ContractUtility: AsyncWeb3 initialization and contract ABI loading."""

import json
from pathlib import Path

from web3 import AsyncWeb3
from web3.contract import AsyncContract

# Default RPC endpoints per network.
NETWORKS: dict[str, str] = {
    "arbitrum": "https://arb1.arbitrum.io/rpc",
}

# Predeployed API3 contract addresses per network, see
# https://github.com/api3dao/contracts/tree/main/deployments
DEFAULT_CONTRACT_ADDRESSES: dict[str, dict[str, str]] = {
    "arbitrum": {
        "Api3ServerV1": "0x709944a48cAf83535e43471680fDA4905FB3920a",
        "AirseekerRegistry": "0x7B42df2563E128Ae3F68e2CFB1904808F61C8F12",
    },
}


class ContractUtility:
    """Utility for read-only AsyncWeb3 connections and contract ABI loading.

    :ivar network: Network RPC URL.
    :ivar w3: AsyncWeb3 instance.
    """

    def __init__(self, network_name: str, rpc_url: str | None = None) -> None:
        """Initialize the contract utility.

        :param network_name: Name of a known network, or an RPC URL.
        :param rpc_url: Optional RPC URL overriding the network default.
        """
        self.network = rpc_url or NETWORKS.get(network_name, network_name)
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.network))

    @staticmethod
    def get_abi(contract_name: str) -> list:
        """Load a contract ABI from the abis folder.

        :param contract_name: Name of the contract (e.g., "Api3ServerV1").
        :returns: Contract ABI.
        """
        abi_path = (
            Path(__file__).parent.parent / "abis" / f"{contract_name}.json"
        ).resolve()

        with open(abi_path, "r") as file:
            contract_data = json.load(file)

        return contract_data["abi"]

    def get_contract(self, contract_name: str, address: str) -> AsyncContract:
        """Create a contract object bound to this connection.

        :param contract_name: Name of the contract ABI to load.
        :param address: Deployed contract address.
        :returns: AsyncContract instance.
        """
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=self.get_abi(contract_name),
        )
