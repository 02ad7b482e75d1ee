"""Token Staking Transactions."""

from typing import Union

from solders.compute_budget import set_compute_unit_price
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.instructions import get_associated_token_address

from token_staking.constants import DEFAULT_COMPUTE_UNIT_PRICE, as_pubkey, as_signer_pubkey
from token_staking.errors import InvalidBlockhash, InvalidMint
from token_staking.instructions import build_deposit_instruction
from token_staking.state import BONK_DEPLOYMENT, StakeConfig, StakeDeployment


def as_blockhash(value: Union[Hash, str]) -> Hash:
    if isinstance(value, Hash):
        return value
    try:
        return Hash.from_string(value)
    except (TypeError, ValueError) as err:
        raise InvalidBlockhash(f"{value!r} is not a valid blockhash") from err


def build_deposit_transaction(
    payer: Union[Keypair, Pubkey],
    config: StakeConfig,
    recent_blockhash: Union[Hash, str],
    deployment: StakeDeployment = BONK_DEPLOYMENT,
    compute_unit_price: int = DEFAULT_COMPUTE_UNIT_PRICE,
) -> Transaction:
    """Creates an unsigned transaction depositing tokens from the payer's associated token account.

    The payer is also the owner of the deposit and the fee payer. Signing, and
    fetching `recent_blockhash`, are left to the caller.
    """
    payer = as_signer_pubkey(payer)
    mint = as_pubkey(deployment.mint, InvalidMint)
    from_token_account = get_associated_token_address(payer, mint)
    instructions = [
        set_compute_unit_price(compute_unit_price),
        build_deposit_instruction(payer, payer, from_token_account, config, deployment),
    ]
    message = Message.new_with_blockhash(instructions, payer, as_blockhash(recent_blockhash))
    return Transaction.new_unsigned(message)
