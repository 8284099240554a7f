"""
Async client for the MonkaBreak game contract.

Every mutating method submits exactly one transaction and then waits for
it to be mined. If that wait times out a ``TransactionDroppedError`` is
raised, but the transaction has already been broadcast and may still be
included later: calling the same method again can submit it twice. The
client does no deduplication; check the game state before retrying.
"""

import asyncio

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    Web3Exception,
    Web3ValidationError,
)

from monkabreak.abi import MONKABREAK_ABI, load_abi
from monkabreak.events import (
    GAME_EVENTS,
    EventListener,
    EventSubscription,
    build_decoders,
    hex_string,
    log_event,
)
from monkabreak.exceptions import (
    BelowMinimumFeeError,
    EndpointUnreachableError,
    EventDecodeError,
    EventNotFoundError,
    InvalidArgumentError,
    InvalidCredentialError,
    RemoteCallError,
    TransactionDroppedError,
    TransactionRevertedError,
)
from monkabreak.logger import logger
from monkabreak.models import ConfirmedReceipt, CreatedGame, GameStateView, MoneyAmount, PlayerView
from monkabreak.network import CONNECTION_ERRORS, ChainInfo, check_endpoint_chain
from monkabreak.signers import LocalSigner
from monkabreak.units import PATH_LABELS, to_wei


def _validate_game_id(game_id) -> int:
    if isinstance(game_id, bool) or not isinstance(game_id, int) or game_id < 0:
        raise InvalidArgumentError(f"game id must be a non-negative integer, got {game_id!r}")
    return game_id


def _validate_path(path_choice) -> int:
    if isinstance(path_choice, bool) or not isinstance(path_choice, int) \
            or not 0 <= path_choice < len(PATH_LABELS):
        raise InvalidArgumentError(
            f"Invalid path choice {path_choice!r}. Must be 0 (A), 1 (B), or 2 (C)"
        )
    return int(path_choice)


def _checksum(address, what="address") -> str:
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as ex:
        raise InvalidArgumentError(f"invalid {what} {address!r}") from ex


def _as_wei(amount) -> int:
    """Ints are wei; MoneyAmount is unwrapped; anything else is parsed as MON."""
    if isinstance(amount, MoneyAmount):
        return amount.wei
    if isinstance(amount, int) and not isinstance(amount, bool):
        if amount < 0:
            raise InvalidArgumentError(f"amount must not be negative: {amount}")
        return amount
    return to_wei(amount)


class GameClient:
    def __init__(self, rpc_url, contract_address, abi=None, *, signer=None, private_key=None,
                 chain=None, w3=None, receipt_timeout=120, poll_interval=2.0,
                 gas_multiplier=1.2, min_entry_fee=None):
        if signer is not None and private_key is not None:
            raise InvalidCredentialError("pass either a signer or a private key, not both")
        if private_key is not None:
            signer = LocalSigner(private_key)

        self.address = _checksum(contract_address, "contract address")

        if isinstance(chain, int):
            chain = ChainInfo(chain_id=chain, rpc_url=rpc_url)

        self.rpc_url = rpc_url
        self.signer = signer
        self.chain = chain
        self.abi = abi or MONKABREAK_ABI
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval
        self.gas_multiplier = gas_multiplier
        self.min_entry_fee = min_entry_fee

        self._owns_provider = w3 is None
        self.w3 = w3 if w3 is not None else AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.contract = self.w3.eth.contract(address=self.address, abi=self.abi)
        self.decoders = build_decoders(self.abi)
        self._listeners = []

    @classmethod
    def from_settings(cls, settings, signer=None, **kwargs):
        if not settings.CONTRACT_ADDRESS:
            raise InvalidArgumentError("CONTRACT_ADDRESS is not configured")
        if signer is None and settings.PRIVATE_KEY is not None:
            kwargs["private_key"] = settings.PRIVATE_KEY.get_secret_value()
        return cls(
            settings.RPC_URL,
            settings.CONTRACT_ADDRESS,
            abi=load_abi(settings.ABI_FILE) if settings.ABI_FILE else None,
            signer=signer,
            chain=settings.chain(),
            receipt_timeout=settings.RECEIPT_TIMEOUT,
            poll_interval=settings.POLL_INTERVAL,
            gas_multiplier=settings.GAS_MULTIPLIER,
            min_entry_fee=settings.MIN_ENTRY_FEE_WEI,
            **kwargs,
        )

    # Lifecycle

    async def connect(self):
        """Check the endpoint and chain, then connect the signer."""
        if not await self.w3.is_connected():
            raise EndpointUnreachableError(self.rpc_url)
        if self.chain is not None:
            await self._remote(check_endpoint_chain(self.w3, self.chain.chain_id), "chain_id")
        if self.signer is not None:
            await self.signer.connect(self.chain)
        logger.info(f"connect | {self.rpc_url} contract:{self.address}")
        return self

    async def close(self):
        listeners, self._listeners = self._listeners, []
        try:
            results = await asyncio.gather(*(listener.stop() for listener in listeners), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"close | listener did not stop cleanly: {result!r}")
        finally:
            if self._owns_provider:
                await self.w3.provider.disconnect()

    async def __aenter__(self):
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # Remote plumbing

    async def _remote(self, awaitable, name):
        try:
            return await awaitable
        except CONNECTION_ERRORS as ex:
            raise EndpointUnreachableError(self.rpc_url, ex) from ex
        except Web3Exception as ex:
            raise RemoteCallError(f"{name} failed: {ex}") from ex

    def _function(self, name, *args):
        try:
            return getattr(self.contract.functions, name)(*args)
        except Web3ValidationError as ex:
            raise InvalidArgumentError(f"{name}: {ex}") from ex

    async def _call(self, name, *args):
        return await self._remote(self._function(name, *args).call(), name)

    def _require_signer(self):
        if self.signer is None:
            raise InvalidCredentialError("no signer configured; pass a private key or wallet signer")
        return self.signer

    async def _transact(self, name, *args, value=0) -> ConfirmedReceipt:
        signer = self._require_signer()
        function = self._function(name, *args)
        params = {"from": signer.address, "value": value}
        try:
            gas = await function.estimate_gas(params)
            params["gas"] = int(gas * self.gas_multiplier)
            params["gasPrice"] = await self.w3.eth.gas_price
            tx = await function.build_transaction(params)
            tx_hash = await signer.send_transaction(self.w3, tx)
        except ContractLogicError as ex:
            logger.warning(f"{name} | rejected before submission: {ex}")
            raise TransactionRevertedError(None, ex) from ex
        except CONNECTION_ERRORS as ex:
            raise EndpointUnreachableError(self.rpc_url, ex) from ex
        except Web3Exception as ex:
            raise RemoteCallError(f"{name} submission failed: {ex}") from ex

        tx_hash = hex_string(tx_hash)
        logger.info(f"{name} | submitted tx: {tx_hash}")
        return await self.wait_for_receipt(tx_hash, name)

    async def wait_for_receipt(self, tx_hash, name="transaction") -> ConfirmedReceipt:
        """Block until ``tx_hash`` is mined.

        A timeout only abandons the wait; the transaction stays submitted.
        """
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout, poll_latency=self.poll_interval
            )
        except TimeExhausted as ex:
            logger.warning(f"{name} | not included after {self.receipt_timeout}s: {tx_hash}")
            raise TransactionDroppedError(tx_hash, self.receipt_timeout) from ex
        except CONNECTION_ERRORS as ex:
            raise EndpointUnreachableError(self.rpc_url, ex) from ex
        except Web3Exception as ex:
            raise RemoteCallError(f"{name} receipt failed: {ex}") from ex

        if receipt["status"] != 1:
            logger.warning(f"{name} | reverted tx: {tx_hash}")
            raise TransactionRevertedError(tx_hash)

        logger.info(f"{name} | confirmed tx: {tx_hash} block:{receipt['blockNumber']}")
        return ConfirmedReceipt(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            gas_used=receipt.get("gasUsed", 0),
            status=receipt["status"],
            logs=tuple(receipt.get("logs") or ()),
        )

    async def _check_entry_fee(self, entry_fee: int):
        min_entry_fee = self.min_entry_fee
        if min_entry_fee is None:
            min_entry_fee = (await self.get_min_entry_fee()).wei
        if entry_fee < min_entry_fee:
            raise BelowMinimumFeeError(entry_fee, min_entry_fee)

    # Mutating operations

    async def create_game(self, entry_fee) -> CreatedGame:
        """Create a game; ``entry_fee`` is wei (int) or a MON amount (str/Decimal/float)."""
        entry_fee = _as_wei(entry_fee)
        await self._check_entry_fee(entry_fee)
        receipt = await self._transact("createGame", entry_fee)
        game_id = self._created_game_id(receipt)
        logger.info(f"create_game | game:{game_id} entry fee:{entry_fee} wei")
        return CreatedGame(game_id=game_id, receipt=receipt)

    def _created_game_id(self, receipt: ConfirmedReceipt) -> int:
        decoder = self.decoders["GameCreated"]
        for log in receipt.logs:
            address = log.get("address")
            if address is not None and address.lower() != self.address.lower():
                continue
            if not decoder.matches(log):
                continue
            try:
                return decoder.decode_args(log)["gameId"]
            except EventDecodeError as ex:
                raise RemoteCallError(f"GameCreated log undecodable in {receipt.tx_hash}") from ex
        raise EventNotFoundError("GameCreated", receipt.tx_hash)

    async def join_game(self, game_id, nickname="", is_thief=True, entry_fee=None) -> ConfirmedReceipt:
        """Join as a thief or police officer, paying the game's entry fee.

        Without ``entry_fee`` the fee is read from the game state first.
        """
        game_id = _validate_game_id(game_id)
        if entry_fee is None:
            entry_fee = (await self.get_game_state(game_id)).entry_fee.wei
        else:
            entry_fee = _as_wei(entry_fee)
            await self._check_entry_fee(entry_fee)
        return await self._transact("joinGame", game_id, nickname, bool(is_thief), value=entry_fee)

    async def start_game(self, game_id, entry_fee=None) -> ConfirmedReceipt:
        game_id = _validate_game_id(game_id)
        value = 0
        if entry_fee is not None:
            value = _as_wei(entry_fee)
            await self._check_entry_fee(value)
        return await self._transact("startGame", game_id, value=value)

    async def commit_move(self, game_id, path_choice) -> ConfirmedReceipt:
        game_id = _validate_game_id(game_id)
        path_choice = _validate_path(path_choice)
        return await self._transact("commitMove", game_id, path_choice)

    async def vote_block(self, game_id, path_choice) -> ConfirmedReceipt:
        game_id = _validate_game_id(game_id)
        path_choice = _validate_path(path_choice)
        return await self._transact("voteBlock", game_id, path_choice)

    async def process_stage(self, game_id) -> ConfirmedReceipt:
        return await self._transact("processStage", _validate_game_id(game_id))

    async def finalize_game(self, game_id) -> ConfirmedReceipt:
        return await self._transact("finalizeGame", _validate_game_id(game_id))

    # Queries

    async def get_game_state(self, game_id) -> GameStateView:
        game_id = _validate_game_id(game_id)
        result = await self._call("getGameState", game_id)
        try:
            return GameStateView(
                game_id=game_id,
                creator=result[0],
                entry_fee=MoneyAmount(wei=result[1]),
                started=result[2],
                finalized=result[3],
                current_stage=result[4],
                thieves_count=result[5],
                police_count=result[6],
                alive_thieves=result[7],
                total_players=result[8],
            )
        except (IndexError, TypeError, ValueError) as ex:
            raise RemoteCallError(f"unexpected getGameState result: {result!r}") from ex

    async def get_players(self, game_id) -> list[PlayerView]:
        players = await self._call("getPlayers", _validate_game_id(game_id))
        try:
            return [
                PlayerView(
                    address=player[0],
                    nickname=player[1],
                    is_thief=player[2],
                    eliminated=player[3],
                    moves=tuple(int(move) for move in player[4]),
                )
                for player in players
            ]
        except (IndexError, TypeError, ValueError) as ex:
            raise RemoteCallError(f"unexpected getPlayers result: {players!r}") from ex

    async def get_vault_balance(self, game_id) -> MoneyAmount:
        balance = await self._call("getVaultBalance", _validate_game_id(game_id))
        return MoneyAmount(wei=balance)

    async def is_winner(self, game_id, player_address) -> bool:
        player_address = _checksum(player_address, "player address")
        return bool(await self._call("isWinner", _validate_game_id(game_id), player_address))

    async def get_current_game_id(self) -> int:
        return int(await self._call("getCurrentGameId"))

    async def get_min_entry_fee(self) -> MoneyAmount:
        """Read the contract's minimum entry fee and cache it for fee checks."""
        self.min_entry_fee = int(await self._call("MIN_ENTRY_FEE"))
        return MoneyAmount(wei=self.min_entry_fee)

    async def get_balance(self, address=None) -> MoneyAmount:
        if address is None:
            address = self._require_signer().address
        balance = await self._remote(self.w3.eth.get_balance(_checksum(address)), "get_balance")
        return MoneyAmount(wei=balance)

    # Events

    def subscribe(self, *event_names, from_block=None, on_error=None) -> EventSubscription:
        names = event_names or GAME_EVENTS
        unknown = [name for name in names if name not in self.decoders]
        if unknown:
            raise InvalidArgumentError(f"unknown event(s): {', '.join(unknown)}")
        return EventSubscription(
            self.w3,
            self.address,
            [self.decoders[name] for name in names],
            from_block=from_block,
            poll_interval=self.poll_interval,
            on_error=on_error,
            endpoint=self.rpc_url,
        )

    def setup_event_listeners(self, handlers=None, on_error=None, from_block=None,
                              default_handler=log_event) -> EventListener:
        """Start delivering every game event to ``handlers`` (name -> callable).

        Events without a handler go to ``default_handler``, which logs them.
        Call ``close()`` or ``listener.stop()`` to end delivery.
        """
        subscription = self.subscribe(from_block=from_block, on_error=on_error)
        listener = EventListener(subscription, handlers, default_handler=default_handler).start()
        self._listeners.append(listener)
        return listener
