class MonkaBreakError(Exception):
    pass


class InvalidCredentialError(MonkaBreakError):
    pass


class EndpointUnreachableError(MonkaBreakError):
    def __init__(self, endpoint: str, reason: object = None):
        self.endpoint = endpoint
        message = f"RPC endpoint unreachable: {endpoint}"
        if reason is not None:
            message += f" ({reason})"
        super().__init__(message)


class InvalidArgumentError(MonkaBreakError, ValueError):
    pass


class InvalidAmountError(MonkaBreakError, ValueError):
    pass


class BelowMinimumFeeError(MonkaBreakError):
    def __init__(self, entry_fee: int, min_entry_fee: int):
        self.entry_fee = entry_fee
        self.min_entry_fee = min_entry_fee
        super().__init__(f"Entry fee {entry_fee} wei is below the minimum of {min_entry_fee} wei")


class TransactionRevertedError(MonkaBreakError):
    def __init__(self, tx_hash: str | None, reason: object = None):
        self.tx_hash = tx_hash
        self.reason = reason
        message = "Transaction reverted"
        if tx_hash:
            message += f" | tx: {tx_hash}"
        if reason is not None:
            message += f" | {reason}"
        super().__init__(message)


class TransactionDroppedError(MonkaBreakError):
    """The transaction was not included before the wait timed out.

    It may still be mined later: a submitted transaction cannot be recalled.
    """

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not included within {timeout}s")


class EventNotFoundError(MonkaBreakError):
    def __init__(self, event_name: str, tx_hash: str):
        self.event_name = event_name
        self.tx_hash = tx_hash
        super().__init__(f"No {event_name} log in receipt of {tx_hash}")


class RemoteCallError(MonkaBreakError):
    pass


class NetworkMismatchError(RemoteCallError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Connected to chain {actual}, expected {expected}")


class WalletRequestError(RemoteCallError):
    def __init__(self, code: int, message: str = ""):
        self.code = code
        super().__init__(f"Wallet request declined | error code: {code} {message}".rstrip())


class EventDecodeError(RemoteCallError):
    pass
