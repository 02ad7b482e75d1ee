import argparse
import asyncio
import json
from typing import Optional

from solders.keypair import Keypair
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed

from token_staking.actions import deposit, find_next_available_nonce
from token_staking.constants import BONK_DECIMALS, DEFAULT_COMPUTE_UNIT_PRICE, LOCKUP_DURATIONS_DAYS
from token_staking.constants import SECONDS_PER_DAY
from token_staking.errors import InvalidDuration, KeypairError
from token_staking.state import BONK_DEPLOYMENT, StakeConfig


async def get_client(endpoint: str) -> AsyncClient:
    print(f'Connecting to network at {endpoint}')
    async_client = AsyncClient(endpoint=endpoint, commitment=Confirmed)
    total_attempts = 10
    current_attempt = 0
    while not await async_client.is_connected():
        if current_attempt == total_attempts:
            raise Exception("Could not connect to RPC endpoint")
        else:
            current_attempt += 1
        await asyncio.sleep(1)
    return async_client


def lockup_duration_from_days(days: int) -> int:
    if days not in LOCKUP_DURATIONS_DAYS:
        raise InvalidDuration(f"Duration must be one of {', '.join(str(d) for d in LOCKUP_DURATIONS_DAYS)} days")
    return days * SECONDS_PER_DAY


def amount_from_ui(amount: float, decimals: int = BONK_DECIMALS) -> int:
    return int(round(amount * 10 ** decimals))


async def stake(endpoint: str, owner: Keypair, amount: float, duration_days: int,
                nonce: Optional[int], compute_unit_price: int):
    config_amount = amount_from_ui(amount)
    lockup_duration = lockup_duration_from_days(duration_days)
    async_client = await get_client(endpoint)
    try:
        if nonce is None:
            nonce = await find_next_available_nonce(async_client, owner.pubkey(), BONK_DEPLOYMENT)
        print(f'Using nonce {nonce}')
        config = StakeConfig(amount=config_amount, lockup_duration=lockup_duration, nonce=nonce)
        signature = await deposit(async_client, owner, config, BONK_DEPLOYMENT, compute_unit_price)
        print(f'Deposit confirmed: https://solscan.io/tx/{signature}')
        print(f'Unlocks in {duration_days} days')
    finally:
        await async_client.close()


def keypair_from_file(keyfile_name: str) -> Keypair:
    try:
        with open(keyfile_name, 'r') as keyfile:
            data = keyfile.read()
        int_list = json.loads(data)
        return Keypair.from_bytes(bytes(int_list))
    except (OSError, TypeError, ValueError) as err:
        raise KeypairError(f'Could not load keypair from {keyfile_name}: {err}') from err


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Deposit BONK into the BONK stake pool.')
    parser.add_argument('owner', metavar='OWNER_KEYPAIR', type=str,
                        help='Owner of the tokens to deposit, given by a keypair file, e.g. owner.json')
    parser.add_argument('amount', metavar='AMOUNT', type=float,
                        help='Amount of BONK to deposit, e.g. 100.5')
    parser.add_argument('duration', metavar='DURATION_DAYS', type=int, choices=LOCKUP_DURATIONS_DAYS,
                        help='Lock duration in days, one of 30, 90, 180 or 365')
    parser.add_argument('--nonce', metavar='NONCE', type=int, default=None,
                        help='Deposit receipt nonce, defaults to the first unused one')
    parser.add_argument('--priority-fee', metavar='MICRO_LAMPORTS', type=int,
                        default=DEFAULT_COMPUTE_UNIT_PRICE,
                        help='Compute unit price in micro-lamports')
    parser.add_argument('--endpoint', metavar='ENDPOINT_URL', type=str,
                        default='https://api.mainnet-beta.solana.com',
                        help='RPC endpoint to use, e.g. https://api.mainnet-beta.solana.com')

    args = parser.parse_args()
    owner = keypair_from_file(args.owner)
    print(f'Depositing {args.amount} BONK for {args.duration} days')
    print(f'Owner public key: {owner.pubkey()}')
    asyncio.run(stake(args.endpoint, owner, args.amount, args.duration, args.nonce, args.priority_fee))
