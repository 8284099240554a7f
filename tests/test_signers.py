"""Unit tests for monkabreak/signers.py and monkabreak/network.py"""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from pydantic import SecretStr

from conftest import CONTRACT_ADDRESS, PLAYER_ADDRESS, PLAYER_KEY, TX_HASH, FakeWallet, FakeWeb3
from monkabreak.client import GameClient
from monkabreak.exceptions import InvalidCredentialError, NetworkMismatchError, WalletRequestError
from monkabreak.network import ChainInfo, check_endpoint_chain, ensure_wallet_chain
from monkabreak.signers import LocalSigner, Signer, WalletSigner, to_rpc_transaction

MONAD = ChainInfo(
    chain_id=10143,
    rpc_url="https://testnet-rpc.monad.xyz",
    explorer_url="https://testnet.monadexplorer.com",
)


def signed_tx_fields():
    return {
        "to": CONTRACT_ADDRESS,
        "value": 0,
        "gas": 120_000,
        "gasPrice": 1_000_000_000,
        "data": "0x",
        "chainId": 10143,
    }


# --- LocalSigner ----


def test_signer_base_requires_implementation() -> None:
    with pytest.raises(TypeError):
        Signer()


@pytest.mark.parametrize("key", ["", None, "0x1234", "not-a-key", "0x" + "00" * 32])
def test_local_signer_rejects_invalid_keys(key) -> None:
    with pytest.raises(InvalidCredentialError):
        LocalSigner(key)


def test_local_signer_accepts_secret_str() -> None:
    signer = LocalSigner(SecretStr(PLAYER_KEY))

    assert signer.address == Account.from_key(PLAYER_KEY).address
    assert PLAYER_KEY not in repr(signer)


async def test_local_signer_signs_and_broadcasts() -> None:
    w3 = FakeWeb3()
    signer = LocalSigner(PLAYER_KEY)

    tx_hash = await signer.send_transaction(w3, {"from": signer.address, **signed_tx_fields()})

    assert tx_hash == TX_HASH
    assert ("get_transaction_count", signer.address, "pending") in w3.eth.calls
    (raw,) = [call[1] for call in w3.eth.remote_calls("send_raw_transaction")]
    assert Account.recover_transaction(raw) == signer.address


async def test_local_signer_keeps_explicit_nonce() -> None:
    w3 = FakeWeb3()
    signer = LocalSigner(PLAYER_KEY)

    await signer.send_transaction(w3, {**signed_tx_fields(), "nonce": 9})

    assert w3.eth.remote_calls("get_transaction_count") == []


async def test_local_signer_signs_messages() -> None:
    signer = LocalSigner(PLAYER_KEY)

    signature = await signer.sign_message("monkabreak")

    recovered = Account.recover_message(encode_defunct(text="monkabreak"), signature=signature)
    assert recovered == signer.address


# --- WalletSigner ----


async def test_wallet_signer_requests_accounts() -> None:
    wallet = FakeWallet({"eth_requestAccounts": [PLAYER_ADDRESS.lower()]})
    signer = WalletSigner(wallet)

    with pytest.raises(InvalidCredentialError):
        signer.address
    await signer.connect()

    assert signer.address == PLAYER_ADDRESS
    assert wallet.methods() == ["eth_requestAccounts"]


async def test_wallet_without_accounts_fails() -> None:
    signer = WalletSigner(FakeWallet({"eth_requestAccounts": []}))

    with pytest.raises(InvalidCredentialError):
        await signer.connect()


async def test_wallet_signer_sends_hex_encoded_transaction() -> None:
    wallet = FakeWallet({
        "eth_requestAccounts": [PLAYER_ADDRESS],
        "eth_chainId": "0x279f",
        "eth_sendTransaction": "0x" + "ab" * 32,
    })
    signer = WalletSigner(wallet)
    await signer.connect()

    tx_hash = await signer.send_transaction(None, {"from": PLAYER_ADDRESS, **signed_tx_fields(), "value": 10 ** 18})

    assert tx_hash == b"\xab" * 32
    method, (params,) = wallet.requests[-1]
    assert method == "eth_sendTransaction"
    assert params["value"] == hex(10 ** 18)
    assert params["gas"] == hex(120_000)
    assert params["to"] == CONTRACT_ADDRESS
    assert params["chainId"] == "0x279f"
    assert wallet.methods() == ["eth_requestAccounts", "eth_chainId", "eth_sendTransaction"]


async def test_wallet_on_other_chain_does_not_submit() -> None:
    wallet = FakeWallet({"eth_requestAccounts": [PLAYER_ADDRESS], "eth_chainId": "0x1"})
    signer = WalletSigner(wallet)
    await signer.connect()

    with pytest.raises(NetworkMismatchError) as err:
        await signer.send_transaction(None, {"from": PLAYER_ADDRESS, **signed_tx_fields()})

    assert (err.value.expected, err.value.actual) == (10143, 1)
    assert "eth_sendTransaction" not in wallet.methods()


async def test_wallet_signer_signs_messages() -> None:
    wallet = FakeWallet({"eth_requestAccounts": [PLAYER_ADDRESS], "personal_sign": "0xsig"})
    signer = WalletSigner(wallet)
    await signer.connect()

    assert await signer.sign_message("hi") == "0xsig"
    assert wallet.requests[-1] == ("personal_sign", ["0x6869", PLAYER_ADDRESS])


def test_to_rpc_transaction_hex_encodes_bytes() -> None:
    params = to_rpc_transaction({"data": b"\x01\x02", "nonce": 3, "chainId": 10143})

    assert params == {"data": "0x0102", "nonce": "0x3", "chainId": "0x279f"}


# --- chain switching ----


async def test_wallet_already_on_chain_is_left_alone() -> None:
    wallet = FakeWallet({"eth_chainId": "0x279f"})

    assert await ensure_wallet_chain(wallet, MONAD) is True
    assert wallet.methods() == ["eth_chainId"]


async def test_wallet_is_switched_to_chain() -> None:
    wallet = FakeWallet({"eth_chainId": "0x1"})

    assert await ensure_wallet_chain(wallet, MONAD) is True
    assert wallet.requests[-1] == ("wallet_switchEthereumChain", [{"chainId": "0x279f"}])


async def test_unknown_chain_is_added() -> None:
    wallet = FakeWallet(
        {"eth_chainId": "0x1"},
        errors={"wallet_switchEthereumChain": WalletRequestError(4902, "Unrecognized chain ID")},
    )

    assert await ensure_wallet_chain(wallet, MONAD) is True

    method, (params,) = wallet.requests[-1]
    assert method == "wallet_addEthereumChain"
    assert params["chainId"] == "0x279f"
    assert params["chainName"] == "Monad Testnet"
    assert params["rpcUrls"] == ["https://testnet-rpc.monad.xyz"]
    assert params["nativeCurrency"] == {"name": "MON", "symbol": "MON", "decimals": 18}
    assert params["blockExplorerUrls"] == ["https://testnet.monadexplorer.com"]


async def test_declined_switch_is_best_effort() -> None:
    wallet = FakeWallet(
        {"eth_chainId": "0x1"},
        errors={"wallet_switchEthereumChain": WalletRequestError(4001, "User rejected")},
    )

    assert await ensure_wallet_chain(wallet, MONAD) is False
    assert "wallet_addEthereumChain" not in wallet.methods()


async def test_wallet_client_switches_chain_on_connect() -> None:
    wallet = FakeWallet({"eth_requestAccounts": [PLAYER_ADDRESS], "eth_chainId": "0x1"})
    client = GameClient(MONAD.rpc_url, CONTRACT_ADDRESS, signer=WalletSigner(wallet), chain=MONAD, w3=FakeWeb3())

    await client.connect()

    assert wallet.methods() == ["eth_requestAccounts", "eth_chainId", "wallet_switchEthereumChain"]
    assert client.signer.address == PLAYER_ADDRESS


async def test_endpoint_chain_mismatch() -> None:
    w3 = FakeWeb3()
    w3.eth.chain = 1

    with pytest.raises(NetworkMismatchError) as err:
        await check_endpoint_chain(w3, 10143)
    assert (err.value.expected, err.value.actual) == (10143, 1)
