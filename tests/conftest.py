import pytest
from types import SimpleNamespace
from typing import Dict, List

from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solana.rpc.core import RPCException
from spl.token.instructions import get_associated_token_address

from token_staking.state import StakeConfig

KNOWN_OWNER = Pubkey.from_string("6tBou5MHL5aWpDy6cgf3wiwGGK2mR8qs68ujtpaoWrf2")
"""Mainnet wallet with deposits at nonces 1 and 2."""


class StubClient:
    """Stands in for AsyncClient, serving accounts and token balances from memory."""

    def __init__(self):
        self.accounts: Dict[Pubkey, bytes] = {}
        self.token_balances: Dict[Pubkey, int] = {}
        self.sent: List = []
        self.blockhash = Hash.new_unique()

    def set_token_balance(self, owner: Pubkey, mint: Pubkey, amount: int):
        self.token_balances[get_associated_token_address(owner, mint)] = amount

    async def get_account_info(self, address: Pubkey, commitment=None):
        if address in self.accounts:
            return SimpleNamespace(value=SimpleNamespace(data=self.accounts[address]))
        return SimpleNamespace(value=None)

    async def get_token_account_balance(self, address: Pubkey, commitment=None):
        if address not in self.token_balances:
            raise RPCException(f"could not find account {address}")
        amount = self.token_balances[address]
        return SimpleNamespace(value=SimpleNamespace(amount=str(amount)))

    async def get_latest_blockhash(self, commitment=None):
        return SimpleNamespace(value=SimpleNamespace(blockhash=self.blockhash))

    async def send_transaction(self, txn, opts=None):
        self.sent.append(txn)
        return SimpleNamespace(value=Signature.default())


@pytest.fixture
def owner() -> Keypair:
    return Keypair()


@pytest.fixture
def stake_config() -> StakeConfig:
    return StakeConfig(amount=10_000_000, lockup_duration=7_776_000, nonce=0)


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()
