"""
Chain gateway: thin binding over the policy contract
"""

import logging
from typing import Optional

from eth_account import Account
from web3 import AsyncWeb3, AsyncHTTPProvider

from utils import settings
from utils.errors import ChainError

logger = logging.getLogger(__name__)

# Only the functions this backend calls
POLICY_CONTRACT_ABI = [
    {
        "type": "function",
        "name": "approveProvider",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "provider", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "approvedProviders",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


class ChainGateway:
    """Signs and sends policy contract transactions with the insurer key"""

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        private_key: str,
        tx_timeout: float = 120,
    ):
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.tx_timeout = tx_timeout
        self.account = Account.from_key(private_key) if private_key else None
        self.contract = (
            self.w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(contract_address),
                abi=POLICY_CONTRACT_ABI,
            )
            if contract_address
            else None
        )

    @property
    def enabled(self) -> bool:
        return self.account is not None and self.contract is not None

    @property
    def signer_address(self) -> Optional[str]:
        return self.account.address if self.account else None

    async def approve_provider(self, provider_address: str) -> str:
        """
        Send approveProvider(provider_address) and wait for the receipt.
        Returns the transaction hash.
        """
        if not self.enabled:
            raise ChainError("Chain signer or contract address not configured")

        try:
            call = self.contract.functions.approveProvider(
                AsyncWeb3.to_checksum_address(provider_address)
            )
            nonce = await self.w3.eth.get_transaction_count(
                self.account.address, "pending"
            )
            tx = await call.build_transaction(
                {"from": self.account.address, "nonce": nonce}
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.tx_timeout
            )
        except Exception as e:
            raise ChainError(f"approveProvider({provider_address}) failed: {e}") from e

        tx_hex = AsyncWeb3.to_hex(tx_hash)
        if receipt["status"] != 1:
            raise ChainError(f"approveProvider({provider_address}) reverted: {tx_hex}")
        return tx_hex

    async def is_provider_approved(self, provider_address: str) -> bool:
        if self.contract is None:
            raise ChainError("Contract address not configured")
        try:
            return await self.contract.functions.approvedProviders(
                AsyncWeb3.to_checksum_address(provider_address)
            ).call()
        except Exception as e:
            raise ChainError(f"approvedProviders({provider_address}) failed: {e}") from e


_chain_gateway: Optional[ChainGateway] = None


def get_chain_gateway() -> ChainGateway:
    """Dependency returning the process-wide chain gateway"""
    global _chain_gateway
    if _chain_gateway is None:
        _chain_gateway = ChainGateway(
            settings.RPC_URL,
            settings.POLICY_CONTRACT_ADDRESS,
            settings.CHAIN_PRIVATE_KEY,
            settings.CHAIN_TX_TIMEOUT,
        )
    return _chain_gateway


def init_chain() -> ChainGateway:
    chain = get_chain_gateway()
    if chain.enabled:
        logger.info(
            "⛓️  Contracts initialized: %s (signer %s)",
            settings.POLICY_CONTRACT_ADDRESS,
            chain.signer_address,
        )
    else:
        logger.warning(
            "⚠️  No chain signer configured; provider approvals will not be mirrored on-chain"
        )
    return chain
