import json

import requests
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from monkabreak.exceptions import EndpointUnreachableError, InvalidArgumentError
from monkabreak.network import ChainInfo


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MONKABREAK_", extra="ignore", env_file=".env", env_file_encoding="utf-8"
    )

    RPC_URL: str = "https://testnet-rpc.monad.xyz"
    CHAIN_ID: int = 10143
    CHAIN_NAME: str = "Monad Testnet"
    EXPLORER_URL: str | None = "https://testnet.monadexplorer.com"

    CONTRACT_ADDRESS: str | None = None
    PRIVATE_KEY: SecretStr | None = None

    DEPLOYMENT_FILE: str | None = None
    ABI_FILE: str | None = None
    MIN_ENTRY_FEE_WEI: int | None = None

    RECEIPT_TIMEOUT: float = 120
    POLL_INTERVAL: float = 2.0
    GAS_MULTIPLIER: float = 1.2

    def chain(self) -> ChainInfo:
        return ChainInfo(
            chain_id=self.CHAIN_ID,
            name=self.CHAIN_NAME,
            rpc_url=self.RPC_URL,
            explorer_url=self.EXPLORER_URL,
        )

    def with_deployment(self, deployment: "Deployment") -> "Settings":
        """Fill the contract fields from a deployment file, keeping explicit values."""
        values = {
            "RPC_URL": deployment.rpc_url,
            "CHAIN_ID": deployment.chain_id,
            "EXPLORER_URL": deployment.explorer_url,
            "CONTRACT_ADDRESS": deployment.contract_address,
            "MIN_ENTRY_FEE_WEI": deployment.min_entry_fee,
        }
        update = {
            key: value for key, value in values.items()
            if value is not None and key not in self.model_fields_set
        }
        return self.model_copy(update=update)


class DeploymentConstants(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    min_entry_fee: int | None = Field(default=None, alias="MIN_ENTRY_FEE")


class Deployment(BaseModel):
    """Contents of the ``MonkaBreak.contract.json`` shipped with a deployment."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    contract_address: str = Field(alias="contractAddress")
    rpc_url: str = Field(alias="rpcUrl")
    chain_id: int = Field(alias="chainId")
    explorer_url: str | None = Field(default=None, alias="explorerUrl")
    constants: DeploymentConstants = DeploymentConstants()

    @property
    def min_entry_fee(self) -> int | None:
        return self.constants.min_entry_fee


def load_deployment(source: str) -> Deployment:
    """Read deployment info from a local JSON file or an http(s) URL."""
    if source.startswith(("http://", "https://")):
        try:
            response = requests.get(source, timeout=5)
        except requests.RequestException as ex:
            raise EndpointUnreachableError(source, ex) from ex
        if response.status_code != 200:
            raise EndpointUnreachableError(source, f"HTTP {response.status_code}")
        text = response.text
    else:
        with open(source, encoding="utf-8") as f:
            text = f.read()

    try:
        return Deployment.model_validate(json.loads(text))
    except (ValueError, ValidationError) as ex:
        raise InvalidArgumentError(f"malformed deployment file {source}: {ex}") from ex


def get_settings() -> Settings:
    settings = Settings()
    if settings.DEPLOYMENT_FILE:
        settings = settings.with_deployment(load_deployment(settings.DEPLOYMENT_FILE))
    return settings
