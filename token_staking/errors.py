"""Token Staking Errors."""


class StakingError(Exception):
    """Base class for every error raised by the token staking client."""


class InvalidProgramId(StakingError):
    """Staking program id is not a valid public key."""


class InvalidStakePool(StakingError):
    """Stake pool address is not a valid public key."""


class InvalidMint(StakingError):
    """Staked token mint is not a valid public key."""


class InvalidRewardVault(StakingError):
    """A reward vault address is not a valid public key."""


class InvalidTokenAccount(StakingError):
    """Source token account address is not a valid public key."""


class InvalidBlockhash(StakingError):
    """Recent blockhash cannot be parsed."""


class InvalidKeypair(StakingError):
    """Payer or owner identity is malformed."""


class KeypairError(StakingError):
    """Keypair could not be loaded."""


class SerializationError(StakingError):
    """Instruction or account data could not be encoded or decoded."""


class ClientError(StakingError):
    """RPC request failed."""


class AccountNotFound(StakingError):
    """Account does not exist on chain."""


class InvalidAmount(StakingError):
    """Deposit amount rejected before submission."""


class InvalidDuration(StakingError):
    """Lockup duration is not one offered by the stake pool."""


class InvalidNonce(StakingError):
    """No usable deposit receipt nonce."""


class InsufficientBalance(StakingError):
    """Token account holds less than the requested deposit."""

    def __init__(self, required: int, available: int):
        super().__init__(f"Insufficient balance: required {required}, available {available}")
        self.required = required
        self.available = available
