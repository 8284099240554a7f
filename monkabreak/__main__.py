import argparse
import asyncio
import sys

from monkabreak.client import GameClient
from monkabreak.exceptions import MonkaBreakError
from monkabreak.settings import get_settings
from monkabreak.units import PathChoice, to_wei


def _path(value):
    try:
        return PathChoice[value.upper()]
    except KeyError:
        pass
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"path must be A, B, C or 0-2, got {value!r}") from None


def build_parser():
    parser = argparse.ArgumentParser(prog="monkabreak", description="MonkaBreak contract client")
    commands = parser.add_subparsers(dest="command", required=True)

    for name in ("state", "players", "vault", "start", "process", "finalize"):
        commands.add_parser(name).add_argument("game_id", type=int)
    commands.add_parser("current-id")
    commands.add_parser("min-fee")

    winner = commands.add_parser("winner")
    winner.add_argument("game_id", type=int)
    winner.add_argument("address")

    balance = commands.add_parser("balance")
    balance.add_argument("address", nargs="?")

    create = commands.add_parser("create")
    create.add_argument("entry_fee", help="entry fee in MON")

    join = commands.add_parser("join")
    join.add_argument("game_id", type=int)
    join.add_argument("--nickname", default="")
    join.add_argument("--police", action="store_true", help="join as police instead of thief")

    for name in ("commit", "vote"):
        command = commands.add_parser(name)
        command.add_argument("game_id", type=int)
        command.add_argument("path", type=_path)

    watch = commands.add_parser("watch")
    watch.add_argument("--from-block", type=int)
    return parser


async def run(args):
    settings = get_settings()
    async with GameClient.from_settings(settings) as game:
        if args.command == "state":
            state = await game.get_game_state(args.game_id)
            print(f"Game {state.game_id}: creator {state.creator}")
            print(f"Entry fee: {state.entry_fee}")
            print(f"Started: {state.started}  Finalized: {state.finalized}  Stage: {state.current_stage}")
            print(f"Thieves: {state.alive_thieves}/{state.thieves_count}  Police: {state.police_count}  "
                  f"Players: {state.total_players}")
        elif args.command == "players":
            for player in await game.get_players(args.game_id):
                status = "eliminated" if player.eliminated else "alive"
                print(f"{player.address} {player.nickname!r} {player.team} {status} "
                      f"moves: {''.join(player.path_labels) or '-'}")
        elif args.command == "vault":
            print(f"Vault: {await game.get_vault_balance(args.game_id)}")
        elif args.command == "winner":
            print(await game.is_winner(args.game_id, args.address))
        elif args.command == "current-id":
            print(await game.get_current_game_id())
        elif args.command == "min-fee":
            print(f"Minimum entry fee: {await game.get_min_entry_fee()}")
        elif args.command == "balance":
            print(f"Balance: {await game.get_balance(args.address)}")
        elif args.command == "create":
            created = await game.create_game(to_wei(args.entry_fee))
            print(f"Game created with ID: {created.game_id} (tx {created.tx_hash}, block {created.block_number})")
        elif args.command == "join":
            receipt = await game.join_game(args.game_id, args.nickname, is_thief=not args.police)
            print(f"Joined game {args.game_id}: tx {receipt.tx_hash}")
        elif args.command == "start":
            receipt = await game.start_game(args.game_id)
            print(f"Game {args.game_id} started: tx {receipt.tx_hash}")
        elif args.command == "commit":
            receipt = await game.commit_move(args.game_id, args.path)
            print(f"Move committed: tx {receipt.tx_hash}")
        elif args.command == "vote":
            receipt = await game.vote_block(args.game_id, args.path)
            print(f"Vote cast: tx {receipt.tx_hash}")
        elif args.command == "process":
            receipt = await game.process_stage(args.game_id)
            print(f"Stage processed: tx {receipt.tx_hash}")
        elif args.command == "finalize":
            receipt = await game.finalize_game(args.game_id)
            print(f"Game finalized: tx {receipt.tx_hash}")
        elif args.command == "watch":
            print("Listening for game events, Ctrl+C to stop...")
            async for event in game.subscribe(from_block=args.from_block):
                print(f"{event.name}: {event.args}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args))
    except MonkaBreakError as ex:
        print(f"Error: {ex}")
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
