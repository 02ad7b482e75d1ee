"""Token Staking State."""

from typing import List, NamedTuple, Tuple
from construct import Bytes, BytesInteger, Container, Struct, Int8ul, Int64sl, Int64ul  # type: ignore

from solders.pubkey import Pubkey

from token_staking.constants import BONK_MINT, BONK_REWARD_VAULT_0, BONK_STAKE_POOL, STAKE_PROGRAM_ID

PUBLIC_KEY_LAYOUT = Bytes(32)

MAX_REWARD_POOLS: int = 10
"""Number of reward pool slots in a stake pool account."""


class StakeConfig(NamedTuple):
    """Terms of a single deposit."""

    amount: int
    """Amount of tokens to deposit, in the mint's smallest denomination."""
    lockup_duration: int
    """Seconds the deposit stays locked."""
    nonce: int = 0
    """Distinguishes deposits of one owner into one pool, part of the receipt seeds."""


class StakeDeployment(NamedTuple):
    """On-chain addresses a deposit is built against."""

    program_id: Pubkey
    """Token staking program."""
    stake_pool: Pubkey
    """Stake pool receiving deposits."""
    mint: Pubkey
    """Mint of the token being staked."""
    reward_vaults: Tuple[Pubkey, ...]
    """Reward pool vaults, in the stake pool's reward pool order."""

    @classmethod
    def from_stake_pool(cls, program_id: Pubkey, stake_pool_address: Pubkey, stake_pool: 'StakePool'):
        return StakeDeployment(
            program_id=program_id,
            stake_pool=stake_pool_address,
            mint=stake_pool.mint,
            reward_vaults=tuple(
                reward_pool.reward_vault for reward_pool in stake_pool.reward_pools
                if reward_pool.reward_vault != Pubkey.default()
            ),
        )


BONK_DEPLOYMENT = StakeDeployment(
    program_id=STAKE_PROGRAM_ID,
    stake_pool=BONK_STAKE_POOL,
    mint=BONK_MINT,
    reward_vaults=(BONK_REWARD_VAULT_0,),
)
"""BONK stake pool on mainnet-beta."""


class RewardPool(NamedTuple):
    """Rewards distributed to depositors of a stake pool."""
    reward_vault: Pubkey
    rewards_per_effective_stake: int
    last_amount: int

    @classmethod
    def decode_container(cls, container: Container):
        return RewardPool(
            reward_vault=Pubkey(container['reward_vault']),
            rewards_per_effective_stake=container['rewards_per_effective_stake'],
            last_amount=container['last_amount'],
        )


class StakePool(NamedTuple):
    """Stake pool and all its data."""
    authority: Pubkey
    total_weighted_stake: int
    vault: Pubkey
    mint: Pubkey
    stake_mint: Pubkey
    reward_pools: List[RewardPool]
    base_weight: int
    max_weight: int
    min_duration: int
    max_duration: int
    nonce: int
    bump_seed: int

    @classmethod
    def decode(cls, data: bytes):
        parsed = STAKE_POOL_LAYOUT.parse(data)
        return StakePool(
            authority=Pubkey(parsed['authority']),
            total_weighted_stake=parsed['total_weighted_stake'],
            vault=Pubkey(parsed['vault']),
            mint=Pubkey(parsed['mint']),
            stake_mint=Pubkey(parsed['stake_mint']),
            reward_pools=[RewardPool.decode_container(container) for container in parsed['reward_pools']],
            base_weight=parsed['base_weight'],
            max_weight=parsed['max_weight'],
            min_duration=parsed['min_duration'],
            max_duration=parsed['max_duration'],
            nonce=parsed['nonce'],
            bump_seed=parsed['bump_seed'],
        )


class StakeDepositReceipt(NamedTuple):
    """Record of a single deposit, created by the program at the receipt address."""
    payer: Pubkey
    stake_pool: Pubkey
    lock_up_duration: int
    """Seconds the deposit stays locked."""
    deposit_timestamp: int
    """Unix timestamp of the deposit."""
    stake_mint_claimed: int
    vault_claimed: int
    effective_stake: int
    """Deposit amount weighted by lock duration."""
    effective_stake_pda_bump: int

    @property
    def unlock_at(self) -> int:
        return self.deposit_timestamp + self.lock_up_duration

    def is_locked(self, current_time: int) -> bool:
        return current_time < self.unlock_at

    def remaining_lock_time(self, current_time: int) -> int:
        """Seconds until the deposit unlocks, 0 once it has."""
        return max(self.unlock_at - current_time, 0)

    @classmethod
    def decode(cls, data: bytes):
        parsed = STAKE_DEPOSIT_RECEIPT_LAYOUT.parse(data)
        return StakeDepositReceipt(
            payer=Pubkey(parsed['payer']),
            stake_pool=Pubkey(parsed['stake_pool']),
            lock_up_duration=parsed['lock_up_duration'],
            deposit_timestamp=parsed['deposit_timestamp'],
            stake_mint_claimed=parsed['stake_mint_claimed'],
            vault_claimed=parsed['vault_claimed'],
            effective_stake=parsed['effective_stake'],
            effective_stake_pda_bump=parsed['effective_stake_pda_bump'],
        )


Int128ul = BytesInteger(16, swapped=True)

REWARD_POOL_LAYOUT = Struct(
    "reward_vault" / PUBLIC_KEY_LAYOUT,
    "rewards_per_effective_stake" / Int128ul,
    "last_amount" / Int64ul,
    "padding0" / Bytes(8),
)

STAKE_POOL_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "authority" / PUBLIC_KEY_LAYOUT,
    "total_weighted_stake" / Int128ul,
    "vault" / PUBLIC_KEY_LAYOUT,
    "mint" / PUBLIC_KEY_LAYOUT,
    "stake_mint" / PUBLIC_KEY_LAYOUT,
    "reward_pools" / REWARD_POOL_LAYOUT[MAX_REWARD_POOLS],
    "base_weight" / Int64ul,
    "max_weight" / Int64ul,
    "min_duration" / Int64ul,
    "max_duration" / Int64ul,
    "nonce" / Int8ul,
    "bump_seed" / Int8ul,
    "padding0" / Bytes(6),
    "reserved0" / Bytes(8),
)

STAKE_DEPOSIT_RECEIPT_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "payer" / PUBLIC_KEY_LAYOUT,
    "stake_pool" / PUBLIC_KEY_LAYOUT,
    "lock_up_duration" / Int64ul,
    "deposit_timestamp" / Int64sl,
    "stake_mint_claimed" / Int64ul,
    "vault_claimed" / Int64ul,
    "effective_stake" / Int128ul,
    "effective_stake_pda_bump" / Int8ul,
)
