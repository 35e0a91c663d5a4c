"""Minimal contract ABIs for the read-only calls the readers make."""


def _view(name: str, inputs: list[str], outputs: list[str]) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": f"arg{i}", "type": kind} for i, kind in enumerate(inputs)],
        "outputs": [{"name": "", "type": kind} for kind in outputs],
    }


ERC20_ABI = [
    _view("balanceOf", ["address"], ["uint256"]),
    _view("decimals", [], ["uint8"]),
    _view("symbol", [], ["string"]),
    _view("name", [], ["string"]),
]

UNISWAP_V3_POSITION_ABI = [
    _view(
        "positions",
        ["uint256"],
        [
            "uint96",
            "address",
            "address",
            "address",
            "uint24",
            "int24",
            "int24",
            "uint128",
            "uint256",
            "uint256",
            "uint128",
            "uint128",
        ],
    ),
    _view("balanceOf", ["address"], ["uint256"]),
    _view("tokenOfOwnerByIndex", ["address", "uint256"], ["uint256"]),
]

AAVE_LENDING_POOL_ABI = [
    _view("getUserReserveData", ["address", "address"], ["uint256"] * 12),
]

COMPOUND_C_TOKEN_ABI = [
    _view("balanceOf", ["address"], ["uint256"]),
    _view("exchangeRateStored", [], ["uint256"]),
    _view("underlying", [], ["address"]),
]
