import pytest
from solders.keypair import Keypair
from solders.signature import Signature
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from token_staking.actions import deposit, find_next_available_nonce, get_stake_pool, get_token_balance
from token_staking.actions import get_user_stake_receipts
from token_staking.constants import BONK_MINT, BONK_STAKE_POOL, STAKE_PROGRAM_ID
from token_staking.constants import derive_stake_deposit_receipt, derive_stake_mint
from token_staking.errors import AccountNotFound, InsufficientBalance, InvalidAmount, InvalidNonce
from token_staking.errors import SerializationError
from token_staking.instructions import decode_deposit_data
from token_staking.state import StakeConfig

from test_state import stake_deposit_receipt_data, stake_pool_data


def add_receipt(client, owner, nonce, lock_up_duration=7_776_000, deposit_timestamp=1_700_000_000):
    (receipt, _) = derive_stake_deposit_receipt(owner.pubkey(), BONK_STAKE_POOL, nonce, STAKE_PROGRAM_ID)
    client.accounts[receipt] = stake_deposit_receipt_data(owner.pubkey(), lock_up_duration, deposit_timestamp)
    return receipt


def add_stake_token_account(client, owner):
    (stake_mint, _) = derive_stake_mint(BONK_STAKE_POOL, STAKE_PROGRAM_ID)
    client.accounts[get_associated_token_address(owner.pubkey(), stake_mint)] = bytes(165)


@pytest.mark.asyncio
async def test_deposit(stub_client, owner, stake_config):
    stub_client.set_token_balance(owner.pubkey(), BONK_MINT, 50_000_000)
    add_stake_token_account(stub_client, owner)
    signature = await deposit(stub_client, owner, stake_config)
    assert signature == Signature.default()
    assert len(stub_client.sent) == 1
    txn = stub_client.sent[0]
    assert len(txn.message.instructions) == 2
    assert txn.message.recent_blockhash == stub_client.blockhash
    assert txn.signatures[0] != Signature.default()
    assert decode_deposit_data(bytes(txn.message.instructions[1].data)) == stake_config


@pytest.mark.asyncio
async def test_deposit_creates_stake_token_account(stub_client, owner, stake_config):
    stub_client.set_token_balance(owner.pubkey(), BONK_MINT, stake_config.amount)
    await deposit(stub_client, owner, stake_config)
    assert len(stub_client.sent) == 2
    create_txn = stub_client.sent[0]
    keys = create_txn.message.account_keys
    assert [keys[ix.program_id_index] for ix in create_txn.message.instructions] == [ASSOCIATED_TOKEN_PROGRAM_ID]


@pytest.mark.asyncio
async def test_deposit_rejects_zero_amount(stub_client, owner):
    with pytest.raises(InvalidAmount):
        await deposit(stub_client, owner, StakeConfig(0, 7_776_000, 0))
    assert stub_client.sent == []


@pytest.mark.asyncio
async def test_deposit_rejects_insufficient_balance(stub_client, owner, stake_config):
    stub_client.set_token_balance(owner.pubkey(), BONK_MINT, 1_000)
    with pytest.raises(InsufficientBalance) as excinfo:
        await deposit(stub_client, owner, stake_config)
    assert excinfo.value.required == stake_config.amount
    assert excinfo.value.available == 1_000
    assert stub_client.sent == []


@pytest.mark.asyncio
async def test_token_balance_without_account(stub_client, owner):
    assert await get_token_balance(stub_client, owner.pubkey(), BONK_MINT) == 0
    stub_client.set_token_balance(owner.pubkey(), BONK_MINT, 42)
    assert await get_token_balance(stub_client, owner.pubkey(), BONK_MINT) == 42


@pytest.mark.asyncio
async def test_find_next_available_nonce(stub_client, owner):
    assert await find_next_available_nonce(stub_client, owner.pubkey()) == 0
    add_receipt(stub_client, owner, 0)
    add_receipt(stub_client, owner, 1)
    assert await find_next_available_nonce(stub_client, owner.pubkey()) == 2


@pytest.mark.asyncio
async def test_no_available_nonce(stub_client, owner):
    for nonce in range(3):
        add_receipt(stub_client, owner, nonce)
    with pytest.raises(InvalidNonce):
        await find_next_available_nonce(stub_client, owner.pubkey(), max_nonce=3)


@pytest.mark.asyncio
async def test_get_user_stake_receipts(stub_client, owner):
    first = add_receipt(stub_client, owner, 1, lock_up_duration=2_592_000)
    second = add_receipt(stub_client, owner, 4, lock_up_duration=31_536_000, deposit_timestamp=1_710_000_000)
    add_receipt(stub_client, Keypair(), 2)
    receipts = await get_user_stake_receipts(stub_client, owner.pubkey(), max_nonce=10)
    assert [(nonce, address) for (nonce, address, _) in receipts] == [(1, first), (4, second)]
    (_, _, first_receipt) = receipts[0]
    assert first_receipt.payer == owner.pubkey()
    assert first_receipt.stake_pool == BONK_STAKE_POOL
    assert first_receipt.lock_up_duration == 2_592_000
    assert not first_receipt.is_locked(1_702_592_000)
    (_, _, second_receipt) = receipts[1]
    assert second_receipt.deposit_timestamp == 1_710_000_000
    assert second_receipt.is_locked(1_720_000_000)
    assert second_receipt.remaining_lock_time(1_720_000_000) == 21_536_000


@pytest.mark.asyncio
async def test_get_user_stake_receipts_rejects_truncated_account(stub_client, owner):
    receipt = add_receipt(stub_client, owner, 0)
    stub_client.accounts[receipt] = stub_client.accounts[receipt][:40]
    with pytest.raises(SerializationError):
        await get_user_stake_receipts(stub_client, owner.pubkey(), max_nonce=2)


@pytest.mark.asyncio
async def test_get_stake_pool(stub_client):
    with pytest.raises(AccountNotFound):
        await get_stake_pool(stub_client)
    mint = Keypair().pubkey()
    stub_client.accounts[BONK_STAKE_POOL] = stake_pool_data(mint, [Keypair().pubkey()])
    stake_pool = await get_stake_pool(stub_client)
    assert stake_pool.mint == mint
