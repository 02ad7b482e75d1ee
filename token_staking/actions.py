from typing import List, Tuple
from construct import ConstructError  # type: ignore

from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
import spl.token.instructions as spl_token

from token_staking.constants import DEFAULT_COMPUTE_UNIT_PRICE, MAX_NONCE_SCAN
from token_staking.constants import derive_stake_deposit_receipt, derive_stake_mint
from token_staking.errors import AccountNotFound, ClientError, InsufficientBalance, InvalidAmount, InvalidNonce
from token_staking.errors import SerializationError
from token_staking.state import BONK_DEPLOYMENT, StakeConfig, StakeDeployment, StakeDepositReceipt, StakePool
from token_staking.transaction import build_deposit_transaction


OPTS = TxOpts(skip_confirmation=False, preflight_commitment=Confirmed)

RPC_ERRORS = (RPCException, SolanaRpcException)


async def get_stake_pool(client: AsyncClient, deployment: StakeDeployment = BONK_DEPLOYMENT) -> StakePool:
    try:
        resp = await client.get_account_info(deployment.stake_pool, commitment=Confirmed)
    except RPC_ERRORS as err:
        raise ClientError(f"Could not fetch stake pool {deployment.stake_pool}: {err}") from err
    if resp.value is None:
        raise AccountNotFound(f"Stake pool {deployment.stake_pool} does not exist")
    return StakePool.decode(bytes(resp.value.data))


async def get_token_balance(client: AsyncClient, owner: Pubkey, mint: Pubkey) -> int:
    token_account = spl_token.get_associated_token_address(owner, mint)
    try:
        resp = await client.get_token_account_balance(token_account, Confirmed)
    except RPCException:
        # no token account yet
        return 0
    except SolanaRpcException as err:
        raise ClientError(f"Could not fetch balance of {token_account}: {err}") from err
    return int(resp.value.amount)


async def account_exists(client: AsyncClient, address: Pubkey) -> bool:
    try:
        resp = await client.get_account_info(address, commitment=Confirmed)
    except RPC_ERRORS as err:
        raise ClientError(f"Could not fetch account {address}: {err}") from err
    return resp.value is not None


async def get_user_stake_receipts(
    client: AsyncClient,
    owner: Pubkey,
    deployment: StakeDeployment = BONK_DEPLOYMENT,
    max_nonce: int = MAX_NONCE_SCAN,
) -> List[Tuple[int, Pubkey, StakeDepositReceipt]]:
    """Nonce, address and decoded data of every existing deposit receipt of `owner`, scanning nonces below `max_nonce`."""
    receipts = []
    for nonce in range(max_nonce):
        (address, _bump) = derive_stake_deposit_receipt(owner, deployment.stake_pool, nonce, deployment.program_id)
        try:
            resp = await client.get_account_info(address, commitment=Confirmed)
        except RPC_ERRORS as err:
            raise ClientError(f"Could not fetch deposit receipt {address}: {err}") from err
        if resp.value is None:
            continue
        try:
            receipt = StakeDepositReceipt.decode(bytes(resp.value.data))
        except ConstructError as err:
            raise SerializationError(f"Could not decode deposit receipt {address}: {err}") from err
        receipts.append((nonce, address, receipt))
    return receipts


async def find_next_available_nonce(
    client: AsyncClient,
    owner: Pubkey,
    deployment: StakeDeployment = BONK_DEPLOYMENT,
    max_nonce: int = MAX_NONCE_SCAN,
) -> int:
    """First nonce whose deposit receipt has not been created yet."""
    for nonce in range(max_nonce):
        (receipt, _bump) = derive_stake_deposit_receipt(owner, deployment.stake_pool, nonce, deployment.program_id)
        if not await account_exists(client, receipt):
            return nonce
    raise InvalidNonce(f"No available nonce found (0-{max_nonce - 1} all in use)")


async def create_associated_token_account(
    client: AsyncClient,
    payer: Keypair,
    owner: Pubkey,
    mint: Pubkey,
) -> Pubkey:
    create_ix = spl_token.create_associated_token_account(payer=payer.pubkey(), owner=owner, mint=mint)
    try:
        recent_blockhash = (await client.get_latest_blockhash()).value.blockhash
        message = Message.new_with_blockhash([create_ix], payer.pubkey(), recent_blockhash)
        await client.send_transaction(Transaction([payer], message, recent_blockhash), opts=OPTS)
    except RPC_ERRORS as err:
        raise ClientError(f"Could not create token account for mint {mint}: {err}") from err
    return create_ix.accounts[1].pubkey


async def deposit(
    client: AsyncClient,
    owner: Keypair,
    config: StakeConfig,
    deployment: StakeDeployment = BONK_DEPLOYMENT,
    compute_unit_price: int = DEFAULT_COMPUTE_UNIT_PRICE,
) -> Signature:
    """Deposits tokens from the owner's associated token account and returns the transaction signature."""
    if config.amount == 0:
        raise InvalidAmount("Amount must be greater than 0")
    balance = await get_token_balance(client, owner.pubkey(), deployment.mint)
    if balance < config.amount:
        raise InsufficientBalance(required=config.amount, available=balance)

    (stake_mint, _bump) = derive_stake_mint(deployment.stake_pool, deployment.program_id)
    destination = spl_token.get_associated_token_address(owner.pubkey(), stake_mint)
    if not await account_exists(client, destination):
        print(f"Creating stake token account {destination}")
        await create_associated_token_account(client, owner, owner.pubkey(), stake_mint)

    print(f"Depositing {config.amount} into stake pool {deployment.stake_pool}, nonce {config.nonce}")
    try:
        recent_blockhash = (await client.get_latest_blockhash()).value.blockhash
        txn = build_deposit_transaction(owner, config, recent_blockhash, deployment, compute_unit_price)
        txn.sign([owner], recent_blockhash)
        resp = await client.send_transaction(txn, opts=OPTS)
    except RPC_ERRORS as err:
        raise ClientError(f"Deposit failed: {err}") from err
    return resp.value
