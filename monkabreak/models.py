from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from monkabreak.units import path_to_string, team_label, to_decimal_string


class _View(BaseModel):
    model_config = ConfigDict(frozen=True)


class MoneyAmount(_View):
    wei: int = Field(ge=0)

    @property
    def display(self) -> str:
        return to_decimal_string(self.wei)

    def __str__(self):
        return f"{self.display} MON"


class GameStateView(_View):
    game_id: int
    creator: str
    entry_fee: MoneyAmount
    started: bool
    finalized: bool
    current_stage: int
    thieves_count: int
    police_count: int
    alive_thieves: int
    total_players: int


class PlayerView(_View):
    address: str
    nickname: str
    is_thief: bool
    eliminated: bool
    moves: tuple[int, ...] = ()

    @property
    def team(self) -> str:
        return team_label(self.is_thief)

    @property
    def path_labels(self) -> list[str]:
        return [path_to_string(move) for move in self.moves]


class ConfirmedReceipt(_View):
    tx_hash: str
    block_number: int
    gas_used: int
    status: int
    logs: tuple[Any, ...] = ()


class CreatedGame(_View):
    game_id: int
    receipt: ConfirmedReceipt

    @property
    def tx_hash(self) -> str:
        return self.receipt.tx_hash

    @property
    def block_number(self) -> int:
        return self.receipt.block_number


class GameEvent(_View):
    """A decoded contract log with display-ready arguments."""
    name: str
    game_id: int
    args: dict[str, Any]
    block_number: int | None = None
    log_index: int | None = None
    tx_hash: str | None = None
