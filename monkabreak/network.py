import asyncio

import aiohttp
from pydantic import BaseModel
from web3.exceptions import ProviderConnectionError

from monkabreak.exceptions import NetworkMismatchError, WalletRequestError
from monkabreak.logger import logger

UNRECOGNIZED_CHAIN = 4902

CONNECTION_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError, ProviderConnectionError)


class ChainInfo(BaseModel):
    chain_id: int
    name: str = "Monad Testnet"
    rpc_url: str
    explorer_url: str | None = None
    currency_name: str = "MON"
    currency_symbol: str = "MON"
    decimals: int = 18

    @property
    def hex_id(self) -> str:
        return hex(self.chain_id)

    def add_chain_params(self) -> dict:
        params = {
            "chainId": self.hex_id,
            "chainName": self.name,
            "rpcUrls": [self.rpc_url],
            "nativeCurrency": {
                "name": self.currency_name,
                "symbol": self.currency_symbol,
                "decimals": self.decimals,
            },
        }
        if self.explorer_url:
            params["blockExplorerUrls"] = [self.explorer_url]
        return params


async def check_endpoint_chain(w3, chain_id: int):
    actual = await w3.eth.chain_id
    if actual != chain_id:
        raise NetworkMismatchError(chain_id, actual)


async def ensure_wallet_chain(provider, chain: ChainInfo) -> bool:
    """Ask the wallet to switch to ``chain``, adding it when unknown.

    Best effort: a declined request is logged and False returned; the
    endpoint check still guards the client.
    """
    current = await provider.request("eth_chainId")
    if current is not None and int(str(current), 0) == chain.chain_id:
        return True

    try:
        await provider.request("wallet_switchEthereumChain", [{"chainId": chain.hex_id}])
    except WalletRequestError as ex:
        if ex.code != UNRECOGNIZED_CHAIN:
            logger.warning(f"wallet | switch to chain {chain.chain_id} declined: {ex}")
            return False
        try:
            await provider.request("wallet_addEthereumChain", [chain.add_chain_params()])
        except WalletRequestError as add_ex:
            logger.warning(f"wallet | add chain {chain.chain_id} declined: {add_ex}")
            return False
        logger.info(f"wallet | added chain {chain.name} ({chain.chain_id})")
        return True

    logger.info(f"wallet | switched to chain {chain.chain_id}")
    return True
