"""
MonkaBreak contract ABI.

Only the entries the client calls or listens for.
"""

import json


def _uint256(name):
    return {"internalType": "uint256", "name": name, "type": "uint256"}


def _game_id_function(name, outputs=None, mutability="nonpayable"):
    return {
        "inputs": [_uint256("gameId")],
        "name": name,
        "outputs": outputs or [],
        "stateMutability": mutability,
        "type": "function"
    }


MONKABREAK_ABI = [
    {
        "inputs": [_uint256("entryFee")],
        "name": "createGame",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            _uint256("gameId"),
            {"internalType": "string", "name": "nickname", "type": "string"},
            {"internalType": "bool", "name": "isThief", "type": "bool"}
        ],
        "name": "joinGame",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    _game_id_function("startGame", mutability="payable"),
    {
        "inputs": [
            _uint256("gameId"),
            {"internalType": "uint8", "name": "pathChoice", "type": "uint8"}
        ],
        "name": "commitMove",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [
            _uint256("gameId"),
            {"internalType": "uint8", "name": "pathChoice", "type": "uint8"}
        ],
        "name": "voteBlock",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    _game_id_function("processStage"),
    _game_id_function("finalizeGame"),
    _game_id_function(
        "getGameState",
        outputs=[
            {"internalType": "address", "name": "creator", "type": "address"},
            {"internalType": "uint256", "name": "entryFee", "type": "uint256"},
            {"internalType": "bool", "name": "started", "type": "bool"},
            {"internalType": "bool", "name": "finalized", "type": "bool"},
            {"internalType": "uint8", "name": "currentStage", "type": "uint8"},
            {"internalType": "uint8", "name": "thievesCount", "type": "uint8"},
            {"internalType": "uint8", "name": "policeCount", "type": "uint8"},
            {"internalType": "uint8", "name": "aliveThieves", "type": "uint8"},
            {"internalType": "uint8", "name": "totalPlayers", "type": "uint8"}
        ],
        mutability="view"
    ),
    _game_id_function(
        "getPlayers",
        outputs=[
            {
                "components": [
                    {"internalType": "address", "name": "addr", "type": "address"},
                    {"internalType": "string", "name": "nickname", "type": "string"},
                    {"internalType": "bool", "name": "isThief", "type": "bool"},
                    {"internalType": "bool", "name": "eliminated", "type": "bool"},
                    {"internalType": "uint8[]", "name": "moves", "type": "uint8[]"}
                ],
                "internalType": "struct MonkaBreak.Player[]",
                "name": "",
                "type": "tuple[]"
            }
        ],
        mutability="view"
    ),
    _game_id_function("getVaultBalance", outputs=[_uint256("")], mutability="view"),
    {
        "inputs": [
            _uint256("gameId"),
            {"internalType": "address", "name": "player", "type": "address"}
        ],
        "name": "isWinner",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getCurrentGameId",
        "outputs": [_uint256("")],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "MIN_ENTRY_FEE",
        "outputs": [_uint256("")],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "creator", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "entryFee", "type": "uint256"}
        ],
        "name": "GameCreated",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "player", "type": "address"},
            {"indexed": False, "internalType": "string", "name": "nickname", "type": "string"},
            {"indexed": False, "internalType": "bool", "name": "isThief", "type": "bool"}
        ],
        "name": "PlayerJoined",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "startBlock", "type": "uint256"}
        ],
        "name": "GameStarted",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "player", "type": "address"},
            {"indexed": False, "internalType": "uint8", "name": "stage", "type": "uint8"}
        ],
        "name": "MoveCommitted",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": True, "internalType": "address", "name": "voter", "type": "address"},
            {"indexed": False, "internalType": "uint8", "name": "stage", "type": "uint8"},
            {"indexed": False, "internalType": "uint8", "name": "blockedPath", "type": "uint8"}
        ],
        "name": "VoteCast",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": False, "internalType": "uint8", "name": "stage", "type": "uint8"},
            {"indexed": False, "internalType": "uint8", "name": "blockedPath", "type": "uint8"},
            {"indexed": False, "internalType": "address[]", "name": "eliminatedPlayers", "type": "address[]"}
        ],
        "name": "StageCompleted",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "gameId", "type": "uint256"},
            {"indexed": False, "internalType": "address[]", "name": "winners", "type": "address[]"},
            {"indexed": False, "internalType": "uint256", "name": "prizePerWinner", "type": "uint256"}
        ],
        "name": "GameFinalized",
        "type": "event"
    }
]


def load_abi(path):
    """Read a JSON ABI, either a bare list or a compiler artifact with an ``abi`` key."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data["abi"]
    return data
