"""ABI fragments for the contracts the bridge batch touches.

Calldata is built from canonical signatures with eth-abi rather than full
contract objects; the batch only needs a handful of calls and one event.
"""

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, keccak

# WETH9
WETH_DEPOSIT = "deposit()"

# ERC-20
ERC20_APPROVE = "approve(address,uint256)"
ERC20_BALANCE_OF = "balanceOf(address)"

# Uniswap V2 style router
ROUTER_GET_AMOUNTS_OUT = "getAmountsOut(uint256,address[])"
ROUTER_SWAP_EXACT_TOKENS = "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)"

# Settlement contract
CALL_TUPLE = "(address,bool,uint256,bytes)"
SETTLEMENT_MULTICALL = f"multicall({CALL_TUPLE}[],address,address,bytes)"
SETTLEMENT_DEPOSIT_ERC20 = "depositErc20(address,address,uint256,bytes)"
SETTLEMENT_DEPOSIT_EVENT = "RelayErc20Deposit(address,address,uint256,bytes32)"
SETTLEMENT_DEPOSIT_EVENT_FIELDS = ["address", "address", "uint256", "bytes32"]
SETTLEMENT_DEPOSIT_TOPIC = keccak(text=SETTLEMENT_DEPOSIT_EVENT)

# Settlement contract custom errors
ERROR_INSUFFICIENT_BALANCE = "InsufficientBalance()"
ERROR_INVALID_ID = "InvalidId()"
ERROR_ID_ALREADY_USED = "IdAlreadyUsed()"

# Solidity built-in revert payloads
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)
PANIC_SELECTOR = bytes.fromhex("4e487b71")  # Panic(uint256)


def selector(signature: str) -> bytes:
    """4-byte function/error selector for a canonical signature."""
    return function_signature_to_4byte_selector(signature)


def encode_call(signature: str, arg_types: list[str], args: list) -> bytes:
    """Build calldata: selector followed by the ABI-encoded arguments."""
    return selector(signature) + encode(arg_types, args)


def encode_weth_deposit() -> bytes:
    return selector(WETH_DEPOSIT)


def encode_approve(spender: str, amount: int) -> bytes:
    return encode_call(ERC20_APPROVE, ["address", "uint256"], [spender, amount])


def encode_balance_of(owner: str) -> bytes:
    return encode_call(ERC20_BALANCE_OF, ["address"], [owner])


def encode_get_amounts_out(amount_in: int, path: list[str]) -> bytes:
    return encode_call(ROUTER_GET_AMOUNTS_OUT, ["uint256", "address[]"], [amount_in, path])


def encode_swap_exact_tokens(
    amount_in: int,
    amount_out_min: int,
    path: list[str],
    to: str,
    deadline: int,
) -> bytes:
    return encode_call(
        ROUTER_SWAP_EXACT_TOKENS,
        ["uint256", "uint256", "address[]", "address", "uint256"],
        [amount_in, amount_out_min, path, to, deadline],
    )


def encode_routing(destination_chain_id: int, recipient: str) -> bytes:
    """Routing payload handed to the deposit: where and to whom value is credited."""
    return encode(["uint256", "address"], [destination_chain_id, recipient])


def encode_deposit_erc20(depositor: str, token: str, amount: int, routing: bytes) -> bytes:
    return encode_call(
        SETTLEMENT_DEPOSIT_ERC20,
        ["address", "address", "uint256", "bytes"],
        [depositor, token, amount, routing],
    )


def encode_multicall(
    calls: list[tuple[str, bool, int, bytes]],
    refund_to: str,
    aux_recipient: str,
    metadata: bytes,
) -> bytes:
    return encode_call(
        SETTLEMENT_MULTICALL,
        [f"{CALL_TUPLE}[]", "address", "address", "bytes"],
        [calls, refund_to, aux_recipient, metadata],
    )


def decode_uint256_array(data: bytes) -> list[int]:
    (values,) = decode(["uint256[]"], data)
    return list(values)


def decode_uint256(data: bytes) -> int:
    (value,) = decode(["uint256"], data)
    return value
