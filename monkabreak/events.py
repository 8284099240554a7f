"""
Contract log decoding and polling subscriptions.

Logs are fetched with ``eth_getLogs`` over the contract address and decoded
with eth-abi against the event entries of the ABI. Each event kind gets one
:class:`EventDecoder`; decoded arguments are turned into display form
(MON strings, path letters, team names) before reaching handlers.
"""

import asyncio
import inspect

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import Web3Exception

from monkabreak.exceptions import EndpointUnreachableError, EventDecodeError, MonkaBreakError, RemoteCallError
from monkabreak.logger import logger
from monkabreak.models import GameEvent
from monkabreak.network import CONNECTION_ERRORS
from monkabreak.units import path_to_string, team_label, to_decimal_string

GAME_EVENTS = (
    "GameCreated",
    "PlayerJoined",
    "GameStarted",
    "MoveCommitted",
    "VoteCast",
    "StageCompleted",
    "GameFinalized",
)

MONEY_FIELDS = {"entryFee", "prizePerWinner"}
PATH_FIELDS = {"blockedPath"}


def hex_string(value) -> str:
    if isinstance(value, str):
        return value
    return Web3.to_hex(value)


def as_bytes(value) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return Web3.to_bytes(hexstr=value)


def _hashed_in_topic(abi_type) -> bool:
    # indexed reference types are stored as the keccak of their encoding
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("tuple")


def _normalize(abi_type, value):
    if abi_type == "address":
        return Web3.to_checksum_address(value)
    if abi_type == "address[]":
        return [Web3.to_checksum_address(item) for item in value]
    if abi_type.endswith("[]"):
        return list(value)
    return value


def to_display(name, args):
    """Convert raw event arguments into what the handlers print."""
    display = {}
    for key, value in args.items():
        if key in MONEY_FIELDS:
            display[key] = to_decimal_string(value)
        elif key in PATH_FIELDS:
            display[key] = path_to_string(value)
        elif key == "isThief":
            display["team"] = team_label(value)
        else:
            display[key] = value
    if name == "StageCompleted":
        display["eliminatedCount"] = len(args["eliminatedPlayers"])
    elif name == "GameFinalized":
        display["winnerCount"] = len(args["winners"])
    return display


class EventDecoder:
    def __init__(self, event_abi):
        self.name = event_abi["name"]
        inputs = event_abi["inputs"]
        self.indexed = [item for item in inputs if item.get("indexed")]
        self.unindexed = [item for item in inputs if not item.get("indexed")]
        self.order = [item["name"] for item in inputs]
        self.signature = f"{self.name}({','.join(item['type'] for item in inputs)})"
        self.topic = bytes(Web3.keccak(text=self.signature))

    def matches(self, log) -> bool:
        topics = log.get("topics") or []
        return bool(topics) and as_bytes(topics[0]) == self.topic

    def decode_args(self, log) -> dict:
        try:
            topics = log["topics"][1:]
            if len(topics) != len(self.indexed):
                raise EventDecodeError(
                    f"{self.name}: expected {len(self.indexed)} indexed topics, got {len(topics)}"
                )
            values = {}
            for item, topic in zip(self.indexed, topics):
                if _hashed_in_topic(item["type"]):
                    values[item["name"]] = hex_string(as_bytes(topic))
                    continue
                (value,) = decode([item["type"]], as_bytes(topic))
                values[item["name"]] = _normalize(item["type"], value)

            data = as_bytes(log.get("data") or b"")
            types = [item["type"] for item in self.unindexed]
            for item, value in zip(self.unindexed, decode(types, data)):
                values[item["name"]] = _normalize(item["type"], value)
        except (DecodingError, LookupError, ValueError, TypeError) as ex:
            raise EventDecodeError(f"{self.name}: undecodable log ({ex})") from ex
        return {key: values[key] for key in self.order}

    def decode_event(self, log) -> GameEvent:
        args = self.decode_args(log)
        tx_hash = log.get("transactionHash")
        return GameEvent(
            name=self.name,
            game_id=args["gameId"],
            args=to_display(self.name, args),
            block_number=log.get("blockNumber"),
            log_index=log.get("logIndex"),
            tx_hash=hex_string(tx_hash) if tx_hash is not None else None,
        )


def build_decoders(abi, names=GAME_EVENTS) -> dict[str, EventDecoder]:
    events = {item["name"]: item for item in abi if item.get("type") == "event"}
    missing = [name for name in names if name not in events]
    if missing:
        raise KeyError(f"ABI has no event(s): {', '.join(missing)}")
    return {name: EventDecoder(events[name]) for name in names}


def _log_position(log):
    return log.get("blockNumber") or 0, log.get("logIndex") or 0


def _report_decode_error(ex, log):
    logger.warning(f"event listener | skipped log {_log_position(log)}: {ex}")


class EventSubscription:
    """Lazy, unbounded stream of decoded events from polled logs.

    Iterate it with ``async for``; it can be iterated only once. Logs are
    yielded in (block number, log index) order within each poll. A log
    that fails to decode goes to ``on_error`` and the stream goes on. A
    failing node ends the stream with ``EndpointUnreachableError`` or
    ``RemoteCallError``.
    """

    def __init__(self, w3, address, decoders, from_block=None, poll_interval=2.0, on_error=None,
                 endpoint=None):
        self.w3 = w3
        self.endpoint = endpoint
        self.address = address
        self.decoders = {decoder.topic: decoder for decoder in decoders}
        self.from_block = from_block
        self.poll_interval = poll_interval
        self.on_error = on_error or _report_decode_error
        self._closed = asyncio.Event()
        self._started = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def unsubscribe(self):
        self._closed.set()

    def __aiter__(self):
        if self._started:
            raise RuntimeError("subscription has already been iterated")
        self._started = True
        return self._stream()

    async def _stream(self):
        next_block = self.from_block
        if next_block is None:
            next_block = await self._remote(self.w3.eth.block_number, "block_number")
        topics = [[Web3.to_hex(topic) for topic in self.decoders]]

        while not self.closed:
            latest = await self._remote(self.w3.eth.block_number, "block_number")
            if latest >= next_block:
                logs = await self._remote(self.w3.eth.get_logs({
                    "address": self.address,
                    "fromBlock": next_block,
                    "toBlock": latest,
                    "topics": topics,
                }), "get_logs")
                for log in sorted(logs, key=_log_position):
                    if self.closed:
                        return
                    decoder = self._decoder_for(log)
                    if decoder is None:
                        continue
                    try:
                        event = decoder.decode_event(log)
                    except EventDecodeError as ex:
                        self.on_error(ex, log)
                        continue
                    yield event
                next_block = latest + 1

            try:
                await asyncio.wait_for(self._closed.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def _remote(self, awaitable, name):
        try:
            return await awaitable
        except CONNECTION_ERRORS as ex:
            raise EndpointUnreachableError(self.endpoint, ex) from ex
        except Web3Exception as ex:
            raise RemoteCallError(f"{name} failed: {ex}") from ex

    def _decoder_for(self, log):
        topics = log.get("topics") or []
        if not topics:
            return None
        return self.decoders.get(as_bytes(topics[0]))


def log_event(event: GameEvent):
    logger.info(f"{event.name} | game:{event.game_id} {event.args}")


class EventListener:
    """Dispatches a subscription's events to per-kind handlers on a task."""

    def __init__(self, subscription: EventSubscription, handlers=None, default_handler=log_event):
        self.subscription = subscription
        self.handlers = dict(handlers or {})
        self.default_handler = default_handler
        self._task = None
        self.error = None

    def start(self):
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self):
        try:
            await self._dispatch()
        except MonkaBreakError as ex:
            self.error = ex
            logger.error(f"event listener | stopped: {ex}")

    async def _dispatch(self):
        async for event in self.subscription:
            handler = self.handlers.get(event.name, self.default_handler)
            if handler is None:
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as ex:
                logger.error(f"event listener | {event.name} handler failed: {ex!r}")

    async def stop(self):
        self.subscription.unsubscribe()
        if self._task is not None:
            await self._task
            self._task = None
