"""Token Staking Instructions."""

import hashlib
from typing import List, NamedTuple, Union
from construct import Const, ConstructError, Struct, Int32ul, Int64ul  # type: ignore

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.sysvar import RENT
import solders.system_program as sys
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from token_staking.constants import as_pubkey, as_signer_pubkey
from token_staking.constants import derive_stake_deposit_receipt, derive_stake_mint, derive_vault
from token_staking.errors import InvalidMint, InvalidProgramId, InvalidRewardVault, InvalidStakePool
from token_staking.errors import InvalidTokenAccount
from token_staking.errors import SerializationError
from token_staking.state import BONK_DEPLOYMENT, StakeConfig, StakeDeployment


def sighash(name: str) -> bytes:
    """Anchor discriminator of the instruction called `name`."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


DEPOSIT_DISCRIMINATOR = sighash("deposit")
"""Leading bytes that select the deposit entry point of the program."""


class DepositParams(NamedTuple):
    """Deposit tokens into a stake pool, receiving stake tokens and a deposit receipt."""

    # Accounts
    program_id: Pubkey
    """Token staking program account."""
    payer: Pubkey
    """`[ws]` Pays for the deposit receipt account."""
    owner: Pubkey
    """`[s]` Owner of the deposited tokens and of the receipt."""
    from_token_account: Pubkey
    """`[w]` Token account the deposit is taken from."""
    vault: Pubkey
    """`[w]` Stake pool vault holding deposited tokens."""
    stake_mint: Pubkey
    """`[w]` Mint of the stake pool's stake token."""
    destination: Pubkey
    """`[w]` Owner's token account receiving stake tokens."""
    stake_pool: Pubkey
    """`[w]` Stake pool."""
    stake_deposit_receipt: Pubkey
    """`[w]` Uninitialized deposit receipt account."""
    token_program_id: Pubkey
    """`[]` SPL Token program id."""
    rent_sysvar: Pubkey
    """`[]` Rent sysvar."""
    system_program_id: Pubkey
    """`[]` System program."""
    reward_vaults: List[Pubkey]
    """`[w]` Reward pool vaults, in the stake pool's reward pool order."""

    # Params
    nonce: int
    """Nonce the deposit receipt was derived with."""
    amount: int
    """Amount of tokens to deposit."""
    lockup_duration: int
    """Seconds the deposit stays locked."""


DEPOSIT_LAYOUT = Struct(
    "discriminator" / Const(DEPOSIT_DISCRIMINATOR),
    "nonce" / Int32ul,
    "amount" / Int64ul,
    "lockup_duration" / Int64ul,
)


def deposit(params: DepositParams) -> Instruction:
    """Creates a transaction instruction to deposit tokens into a stake pool."""
    try:
        data = DEPOSIT_LAYOUT.build(
            dict(
                nonce=params.nonce,
                amount=params.amount,
                lockup_duration=params.lockup_duration,
            )
        )
    except ConstructError as err:
        raise SerializationError(f"Failed to serialize deposit data: {err}") from err
    accounts = [
        AccountMeta(pubkey=params.payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=params.owner, is_signer=True, is_writable=False),
        AccountMeta(pubkey=params.from_token_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.vault, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.stake_mint, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.destination, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.stake_pool, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.stake_deposit_receipt, is_signer=False, is_writable=True),
        AccountMeta(pubkey=params.token_program_id, is_signer=False, is_writable=False),
        AccountMeta(pubkey=params.rent_sysvar, is_signer=False, is_writable=False),
        AccountMeta(pubkey=params.system_program_id, is_signer=False, is_writable=False),
    ]
    # remaining accounts, read by the program in reward pool order
    for reward_vault in params.reward_vaults:
        accounts.append(AccountMeta(pubkey=reward_vault, is_signer=False, is_writable=True))
    return Instruction(
        accounts=accounts,
        program_id=params.program_id,
        data=data,
    )


def build_deposit_instruction(
    payer: Union[Keypair, Pubkey],
    owner: Union[Keypair, Pubkey],
    from_token_account: Pubkey,
    config: StakeConfig,
    deployment: StakeDeployment = BONK_DEPLOYMENT,
) -> Instruction:
    """Creates a deposit instruction, deriving the stake pool's program addresses and the receipt for `config.nonce`."""
    payer = as_signer_pubkey(payer)
    owner = as_signer_pubkey(owner)
    from_token_account = as_pubkey(from_token_account, InvalidTokenAccount)
    program_id = as_pubkey(deployment.program_id, InvalidProgramId)
    stake_pool = as_pubkey(deployment.stake_pool, InvalidStakePool)
    as_pubkey(deployment.mint, InvalidMint)
    reward_vaults = [as_pubkey(vault, InvalidRewardVault) for vault in deployment.reward_vaults]

    (vault, _bump) = derive_vault(stake_pool, program_id)
    (stake_mint, _bump) = derive_stake_mint(stake_pool, program_id)
    (stake_deposit_receipt, _bump) = derive_stake_deposit_receipt(owner, stake_pool, config.nonce, program_id)
    return deposit(
        DepositParams(
            program_id=program_id,
            payer=payer,
            owner=owner,
            from_token_account=from_token_account,
            vault=vault,
            stake_mint=stake_mint,
            destination=get_associated_token_address(owner, stake_mint),
            stake_pool=stake_pool,
            stake_deposit_receipt=stake_deposit_receipt,
            token_program_id=TOKEN_PROGRAM_ID,
            rent_sysvar=RENT,
            system_program_id=sys.ID,
            reward_vaults=reward_vaults,
            nonce=config.nonce,
            amount=config.amount,
            lockup_duration=config.lockup_duration,
        )
    )


def decode_deposit_data(data: bytes) -> StakeConfig:
    """Parses the data of a deposit instruction back into its terms."""
    try:
        parsed = DEPOSIT_LAYOUT.parse(data)
    except ConstructError as err:
        raise SerializationError(f"Failed to parse deposit data: {err}") from err
    return StakeConfig(
        amount=parsed['amount'],
        lockup_duration=parsed['lockup_duration'],
        nonce=parsed['nonce'],
    )
