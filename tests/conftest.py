"""
Fakes of the web3 surface the client touches: ``w3.eth``, contract
functions and a wallet provider. They record every remote interaction in
``FakeEth.calls`` so tests can assert that nothing reached the network.
"""

import pytest
from eth_abi import encode
from web3 import Web3

from monkabreak.client import GameClient
from monkabreak.signers import Signer

CONTRACT_ADDRESS = Web3.to_checksum_address("0x3d5a7e75bcdc45be9f77463ff333b732d537ecc5")
OTHER_ADDRESS = Web3.to_checksum_address("0xb23e0fad9314e307c91329e02ee6ab51fa09be9f")
PLAYER_KEY = "0x34ec0032473a17d04b07c803fa13d3bd98b3c39d7bf36764098ea89bfb0e54f5"
PLAYER_ADDRESS = Web3.to_checksum_address("0x04fbb5958ab998ab5c82f458be1d3a74541a045c")
TX_HASH = b"\x11" * 32
ONE_MON = 10 ** 18


async def _value(value):
    if isinstance(value, Exception):
        raise value
    return value


class FakeFunction:
    def __init__(self, contract, name, args):
        self.contract = contract
        self.name = name
        self.args = args

    async def call(self):
        self.contract.eth.calls.append(("call", self.name, self.args))
        result = self.contract.results.get(self.name)
        if isinstance(result, Exception):
            raise result
        return result

    async def estimate_gas(self, params):
        self.contract.eth.calls.append(("estimate_gas", self.name, self.args, dict(params)))
        error = self.contract.estimate_errors.get(self.name)
        if error is not None:
            raise error
        return 100_000

    async def build_transaction(self, params):
        self.contract.eth.calls.append(("build_transaction", self.name, self.args))
        return {
            **params,
            "to": self.contract.address,
            "data": "0x" + self.name.encode().hex(),
            "chainId": 10143,
        }


class FakeFunctions:
    def __init__(self, contract):
        self._contract = contract

    def __getattr__(self, name):
        return lambda *args: FakeFunction(self._contract, name, args)


class FakeContract:
    def __init__(self, eth, address, abi):
        self.eth = eth
        self.address = address
        self.abi = abi
        self.results = {}
        self.estimate_errors = {}
        self.functions = FakeFunctions(self)


class FakeEth:
    def __init__(self):
        self.calls = []
        self.contract_handle = None
        self.chain = 10143
        self.current_block = 10
        self.receipt = {"status": 1, "blockNumber": 42, "gasUsed": 21_000, "logs": []}
        self.logs = []
        self.logs_error = None
        self.balances = {}

    def contract(self, address, abi):
        self.contract_handle = FakeContract(self, address, abi)
        return self.contract_handle

    @property
    def gas_price(self):
        self.calls.append(("gas_price",))
        return _value(1_000_000_000)

    @property
    def chain_id(self):
        self.calls.append(("chain_id",))
        return _value(self.chain)

    @property
    def block_number(self):
        return _value(self.current_block)

    async def get_transaction_count(self, address, block_identifier="latest"):
        self.calls.append(("get_transaction_count", address, block_identifier))
        return 5

    async def send_raw_transaction(self, raw):
        self.calls.append(("send_raw_transaction", raw))
        return TX_HASH

    async def wait_for_transaction_receipt(self, tx_hash, timeout=120, poll_latency=0.1):
        self.calls.append(("wait_for_transaction_receipt", tx_hash, timeout))
        return await _value(self.receipt)

    async def get_balance(self, address):
        self.calls.append(("get_balance", address))
        return self.balances.get(address, 0)

    async def get_logs(self, params):
        self.calls.append(("get_logs", params))
        if self.logs_error is not None:
            raise self.logs_error
        return [
            log for log in self.logs
            if params["fromBlock"] <= log["blockNumber"] <= params["toBlock"]
        ]

    def remote_calls(self, kind):
        return [call for call in self.calls if call[0] == kind]


class FakeProvider:
    def __init__(self):
        self.disconnected = False

    async def disconnect(self):
        self.disconnected = True


class FakeWeb3:
    def __init__(self, connected=True):
        self.eth = FakeEth()
        self.connected = connected
        self.provider = None

    async def is_connected(self):
        return self.connected


class FakeSigner(Signer):
    def __init__(self, address=PLAYER_ADDRESS):
        self._address = address
        self.sent = []
        self.connected_chain = "never"

    @property
    def address(self):
        return self._address

    async def connect(self, chain=None):
        self.connected_chain = chain

    async def send_transaction(self, w3, tx):
        self.sent.append(tx)
        return TX_HASH

    async def sign_message(self, text):
        return "0x"


class FakeWallet:
    """EIP-1193 style provider answering from a dict of canned responses."""

    def __init__(self, responses=None, errors=None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.requests = []

    async def request(self, method, params=None):
        self.requests.append((method, params))
        if method in self.errors:
            raise self.errors[method]
        return self.responses.get(method)

    def methods(self):
        return [method for method, _ in self.requests]


def event_log(signature, topics=(), data_types=(), data_values=(), address=CONTRACT_ADDRESS,
              block_number=1, log_index=0):
    """Build a raw log the way a node returns it, with ABI-encoded topics and data."""
    return {
        "address": address,
        "topics": [Web3.keccak(text=signature)] + [encode([abi_type], [value]) for abi_type, value in topics],
        "data": encode(list(data_types), list(data_values)),
        "blockNumber": block_number,
        "logIndex": log_index,
        "transactionHash": b"\xaa" * 32,
    }


def game_created_log(game_id, creator=PLAYER_ADDRESS, entry_fee=ONE_MON, **kwargs):
    return event_log(
        "GameCreated(uint256,address,uint256)",
        topics=[("uint256", game_id), ("address", creator)],
        data_types=["uint256"],
        data_values=[entry_fee],
        **kwargs,
    )


@pytest.fixture
def w3():
    return FakeWeb3()


@pytest.fixture
def signer():
    return FakeSigner()


@pytest.fixture
def client(w3, signer):
    return GameClient(
        "http://localhost:8545",
        CONTRACT_ADDRESS,
        signer=signer,
        chain=10143,
        w3=w3,
        receipt_timeout=5,
        poll_interval=0,
        min_entry_fee=ONE_MON,
    )
