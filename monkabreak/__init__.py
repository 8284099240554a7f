from monkabreak.abi import MONKABREAK_ABI
from monkabreak.client import GameClient
from monkabreak.events import EventListener, EventSubscription
from monkabreak.exceptions import (
    BelowMinimumFeeError,
    EndpointUnreachableError,
    EventNotFoundError,
    InvalidAmountError,
    InvalidArgumentError,
    InvalidCredentialError,
    MonkaBreakError,
    RemoteCallError,
    TransactionDroppedError,
    TransactionRevertedError,
)
from monkabreak.models import ConfirmedReceipt, CreatedGame, GameEvent, GameStateView, MoneyAmount, PlayerView
from monkabreak.signers import LocalSigner, Signer, WalletSigner
from monkabreak.units import PathChoice, format_mon, parse_mon, path_to_string, to_decimal_string, to_wei

__all__ = [
    "MONKABREAK_ABI",
    "GameClient",
    "EventListener",
    "EventSubscription",
    "BelowMinimumFeeError",
    "EndpointUnreachableError",
    "EventNotFoundError",
    "InvalidAmountError",
    "InvalidArgumentError",
    "InvalidCredentialError",
    "MonkaBreakError",
    "RemoteCallError",
    "TransactionDroppedError",
    "TransactionRevertedError",
    "ConfirmedReceipt",
    "CreatedGame",
    "GameEvent",
    "GameStateView",
    "MoneyAmount",
    "PlayerView",
    "LocalSigner",
    "Signer",
    "WalletSigner",
    "PathChoice",
    "format_mon",
    "parse_mon",
    "path_to_string",
    "to_decimal_string",
    "to_wei",
]
