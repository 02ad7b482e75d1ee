"""Token Staking Constants."""

from typing import Tuple, Type, Union

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from token_staking.errors import StakingError, InvalidKeypair, InvalidProgramId, InvalidStakePool
from token_staking.errors import SerializationError

STAKE_PROGRAM_ID = Pubkey.from_string("STAKEkKzbdeKkqzKpLkNQD3SUuLgshDKCD7U8duxAbB")
"""Public key that identifies the token staking program."""

BONK_STAKE_POOL = Pubkey.from_string("9AdEE8AAm1XgJrPEs4zkTPozr3o4U5iGbgvPwkNdLDJ3")
"""Public key of the BONK stake pool."""

BONK_MINT = Pubkey.from_string("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263")
"""Public key of the BONK token mint."""

BONK_VAULT = Pubkey.from_string("4XHP9YQeeXPXHAjNXuKio1na1ypcxFSqFYBHtptQticd")
"""Token vault of the BONK stake pool, derived from the pool with `derive_vault`."""

BONK_STAKE_MINT = Pubkey.from_string("FYUjeMAFjbTzdMG91RSW5P4HT2sT7qzJQgDPiPG9ez9o")
"""Stake token mint of the BONK stake pool, derived from the pool with `derive_stake_mint`."""

BONK_REWARD_VAULT_0 = Pubkey.from_string("2PPAJ8P5JgKZjkxq4h3kFSwLcuakFYr4fbV68jGghWxi")
"""Token account of the first reward pool of the BONK stake pool."""

BONK_DECIMALS: int = 5
"""Number of decimals of the BONK mint."""

SECONDS_PER_DAY: int = 86_400

DURATION_1_MONTH: int = 30
"""Lock duration for 1 month in days"""
DURATION_3_MONTHS: int = 90
"""Lock duration for 3 months in days"""
DURATION_6_MONTHS: int = 180
"""Lock duration for 6 months in days"""
DURATION_12_MONTHS: int = 365
"""Lock duration for 12 months in days"""

LOCKUP_DURATIONS_DAYS = (DURATION_1_MONTH, DURATION_3_MONTHS, DURATION_6_MONTHS, DURATION_12_MONTHS)
"""Lock durations offered by the BONK stake pool."""

DEFAULT_COMPUTE_UNIT_PRICE: int = 5045
"""Priority fee, in micro-lamports per compute unit, attached to deposits."""

MAX_NONCE_SCAN: int = 100
"""Number of deposit receipt nonces checked when looking for free or existing receipts."""


def as_pubkey(value: Union[Pubkey, str, bytes], error: Type[StakingError]) -> Pubkey:
    """Coerce a public key, base-58 string or raw 32 bytes to a Pubkey, raising `error` if malformed."""
    if isinstance(value, Pubkey):
        return value
    try:
        if isinstance(value, str):
            return Pubkey.from_string(value)
        if isinstance(value, (bytes, bytearray)) and len(value) == 32:
            return Pubkey(bytes(value))
    except (TypeError, ValueError) as err:
        raise error(f"{value!r} is not a valid public key") from err
    raise error(f"{value!r} is not a valid public key")


def as_signer_pubkey(value: Union[Keypair, Pubkey, str, bytes]) -> Pubkey:
    """Public key of a wallet identity, which must be a point on the ed25519 curve."""
    if isinstance(value, Keypair):
        return value.pubkey()
    pubkey = as_pubkey(value, InvalidKeypair)
    if not pubkey.is_on_curve():
        raise InvalidKeypair(f"{pubkey} is off the ed25519 curve and cannot sign")
    return pubkey


def derive_vault(
    stake_pool: Pubkey,
    program_id: Pubkey,
) -> Tuple[Pubkey, int]:
    """Generates the token vault program address for the stake pool"""
    stake_pool = as_pubkey(stake_pool, InvalidStakePool)
    program_id = as_pubkey(program_id, InvalidProgramId)
    return Pubkey.find_program_address(
        [bytes(stake_pool), VAULT_SEED],
        program_id,
    )


def derive_stake_mint(
    stake_pool: Pubkey,
    program_id: Pubkey,
) -> Tuple[Pubkey, int]:
    """Generates the stake mint program address for the stake pool"""
    stake_pool = as_pubkey(stake_pool, InvalidStakePool)
    program_id = as_pubkey(program_id, InvalidProgramId)
    return Pubkey.find_program_address(
        [bytes(stake_pool), STAKE_MINT_SEED],
        program_id,
    )


def derive_stake_deposit_receipt(
    owner: Pubkey,
    stake_pool: Pubkey,
    nonce: int,
    program_id: Pubkey,
) -> Tuple[Pubkey, int]:
    """Generates the deposit receipt program address for one deposit of `owner` into the stake pool"""
    return Pubkey.find_program_address(
        _stake_deposit_receipt_seeds(owner, stake_pool, nonce),
        as_pubkey(program_id, InvalidProgramId),
    )


def verify_stake_deposit_receipt(
    address: Pubkey,
    bump: int,
    owner: Pubkey,
    stake_pool: Pubkey,
    nonce: int,
    program_id: Pubkey,
) -> bool:
    """Checks that `address` is the deposit receipt for the given seeds and bump."""
    if not 0 <= bump <= 255:
        return False
    seeds = _stake_deposit_receipt_seeds(owner, stake_pool, nonce) + [bytes([bump])]
    try:
        expected = Pubkey.create_program_address(seeds, as_pubkey(program_id, InvalidProgramId))
    except ValueError:
        # bump puts the address on the curve
        return False
    return expected == address


def _stake_deposit_receipt_seeds(owner: Pubkey, stake_pool: Pubkey, nonce: int):
    try:
        nonce_bytes = nonce.to_bytes(4, 'little')
    except OverflowError as err:
        raise SerializationError(f"Nonce {nonce} does not fit in a u32") from err
    return [
        bytes(as_signer_pubkey(owner)),
        bytes(as_pubkey(stake_pool, InvalidStakePool)),
        nonce_bytes,
        STAKE_DEPOSIT_RECEIPT_SEED,
    ]


VAULT_SEED = b"vault"
"""Seed used to derive the stake pool token vault."""
STAKE_MINT_SEED = b"stakeMint"
"""Seed used to derive the stake pool's stake mint."""
STAKE_DEPOSIT_RECEIPT_SEED = b"stakeDepositReceipt"
"""Seed used to derive deposit receipts, appended after owner, pool and nonce."""
