"""
Transaction signers.

``LocalSigner`` holds a private key and signs in-process, the way a headless
bot or script does. ``WalletSigner`` delegates to a browser-style wallet
provider that speaks the EIP-1193 ``request(method, params)`` protocol.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from monkabreak.exceptions import InvalidCredentialError, NetworkMismatchError, WalletRequestError
from monkabreak.logger import logger
from monkabreak.network import ChainInfo, ensure_wallet_chain


class WalletProvider(Protocol):
    async def request(self, method: str, params: list | None = None) -> Any:
        """Send one request; raise WalletRequestError when the wallet declines."""


class Signer(ABC):
    @property
    @abstractmethod
    def address(self) -> str:
        ...

    async def connect(self, chain: ChainInfo | None = None):
        pass

    @abstractmethod
    async def send_transaction(self, w3, tx: dict) -> bytes:
        """Sign and broadcast ``tx``, returning the transaction hash."""

    @abstractmethod
    async def sign_message(self, text: str) -> str:
        ...


class LocalSigner(Signer):
    def __init__(self, private_key):
        if hasattr(private_key, "get_secret_value"):
            private_key = private_key.get_secret_value()
        if not private_key:
            raise InvalidCredentialError("private key is empty")
        try:
            self._account = Account.from_key(private_key)
        except Exception as ex:
            raise InvalidCredentialError(f"invalid private key: {type(ex).__name__}") from None

    @property
    def address(self) -> str:
        return self._account.address

    async def send_transaction(self, w3, tx: dict) -> bytes:
        tx = dict(tx)
        if "nonce" not in tx:
            tx["nonce"] = await w3.eth.get_transaction_count(self.address, "pending")
        signed = self._account.sign_transaction(tx)
        return await w3.eth.send_raw_transaction(signed.raw_transaction)

    async def sign_message(self, text: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=text))
        return Web3.to_hex(signed.signature)

    def __repr__(self):
        return f"LocalSigner({self.address})"


_HEX_FIELDS = ("value", "gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "nonce", "chainId")


def to_rpc_transaction(tx: dict) -> dict:
    """Hex-encode the numeric fields of a transaction dict for JSON-RPC."""
    params = {}
    for key, value in tx.items():
        if key in _HEX_FIELDS:
            params[key] = hex(value)
        elif isinstance(value, (bytes, bytearray)):
            params[key] = Web3.to_hex(value)
        else:
            params[key] = value
    return params


class WalletSigner(Signer):
    def __init__(self, provider: WalletProvider):
        self.provider = provider
        self._address = None

    @property
    def address(self) -> str:
        if self._address is None:
            raise InvalidCredentialError("wallet is not connected")
        return self._address

    async def connect(self, chain: ChainInfo | None = None):
        accounts = await self.provider.request("eth_requestAccounts")
        if not accounts:
            raise InvalidCredentialError("wallet returned no accounts")
        self._address = Web3.to_checksum_address(accounts[0])
        logger.info(f"wallet | connected account {self._address}")
        if chain is not None:
            await ensure_wallet_chain(self.provider, chain)

    async def send_transaction(self, w3, tx: dict) -> bytes:
        if "chainId" in tx:
            current = int(str(await self.provider.request("eth_chainId")), 0)
            if current != tx["chainId"]:
                raise NetworkMismatchError(tx["chainId"], current)
        tx_hash = await self.provider.request("eth_sendTransaction", [to_rpc_transaction(tx)])
        if not tx_hash:
            raise WalletRequestError(-32603, "wallet returned no transaction hash")
        return Web3.to_bytes(hexstr=tx_hash)

    async def sign_message(self, text: str) -> str:
        return await self.provider.request("personal_sign", [Web3.to_hex(text=text), self.address])
