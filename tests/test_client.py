import struct
import unittest
from unittest.mock import AsyncMock, Mock

from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from fusion.client import FusionClient
from fusion.config import DEFAULT_CONFIG
from fusion.errors import PreconditionError
from fusion.instructions import CreateTournamentParams, JoinTournamentParams
from fusion.pda import (
    derive_platform_address,
    derive_prize_vault_address,
    derive_team_address,
    derive_tournament_address,
)
from fusion.wallet import KeypairWallet

NOW = 1_700_000_000
SQUAD = list(range(100, 115))


def _platform_data(counter: int) -> bytes:
    return b"\x00" * 8 + bytes([9] * 32) + struct.pack("<Q", counter)


def _tournament_data(tournament_id: int, entry_fee: int) -> bytes:
    def s(value: str) -> bytes:
        return struct.pack("<I", len(value)) + value.encode()

    return (
        b"\x00" * 8
        + struct.pack("<Q", tournament_id)
        + bytes([1] * 32)
        + s("Cup")
        + s("epl")
        + struct.pack("<QHIQqHqI", entry_fee, 20, 3, 0, NOW + 3600, 7, 0, 0)
        + bytes([0, 0])
    )


def _token_account(owner: Pubkey, amount: int) -> bytes:
    return bytes(DEFAULT_CONFIG.usdc_mint) + bytes(owner) + struct.pack("<Q", amount) + b"\x00" * 93


def _rpc() -> Mock:
    rpc = Mock()
    rpc.get_account_data = AsyncMock(return_value=None)
    rpc.get_balance = AsyncMock(return_value=0)
    rpc.get_token_accounts = AsyncMock(return_value=[])
    rpc.get_latest_blockhash = AsyncMock(return_value=Hash.default())
    rpc.send_raw_transaction = AsyncMock(return_value=Signature.default())
    return rpc


def _create_params(**overrides: object) -> CreateTournamentParams:
    values = {
        "name": "Sunday League",
        "competition": "premier-league",
        "entry_fee": "10",
        "max_participants": 20,
        "registration_deadline": NOW + 86_400,
        "duration_days": 7,
    }
    values.update(overrides)
    return CreateTournamentParams(**values)


def _sent_transaction(rpc: Mock) -> Transaction:
    return Transaction.from_bytes(rpc.send_raw_transaction.await_args.args[0])


class CreateTournamentTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.keypair = Keypair()
        self.rpc = _rpc()
        self.client = FusionClient(
            DEFAULT_CONFIG, self.rpc, KeypairWallet.from_keypair(self.keypair), clock=lambda: NOW
        )

    async def test_uses_next_counter_value(self) -> None:
        self.rpc.get_account_data.return_value = _platform_data(4)
        result = await self.client.create_tournament(_create_params())

        self.assertEqual(result.on_chain_id, 5)
        self.assertEqual(result.signature, Signature.default())
        self.rpc.get_account_data.assert_awaited_once_with(derive_platform_address(DEFAULT_CONFIG))
        keys = _sent_transaction(self.rpc).message.account_keys
        self.assertEqual(keys[0], self.keypair.pubkey())
        self.assertIn(derive_tournament_address(DEFAULT_CONFIG, 5), keys)
        self.assertIn(derive_prize_vault_address(DEFAULT_CONFIG, 5), keys)
        self.assertNotIn(derive_tournament_address(DEFAULT_CONFIG, 4), keys)

    async def test_past_deadline_rejected_before_rpc(self) -> None:
        with self.assertRaisesRegex(PreconditionError, "future"):
            await self.client.create_tournament(_create_params(registration_deadline=NOW - 1))
        self.rpc.get_account_data.assert_not_awaited()

    async def test_invalid_entry_fee_rejected(self) -> None:
        with self.assertRaises(PreconditionError):
            await self.client.create_tournament(_create_params(entry_fee="ten"))
        self.rpc.get_account_data.assert_not_awaited()

    async def test_missing_platform(self) -> None:
        with self.assertRaisesRegex(PreconditionError, "Platform not initialized"):
            await self.client.create_tournament(_create_params())
        self.rpc.send_raw_transaction.assert_not_awaited()

    async def test_wallet_not_connected(self) -> None:
        client = FusionClient(DEFAULT_CONFIG, self.rpc, KeypairWallet("id.json"), clock=lambda: NOW)
        with self.assertRaisesRegex(PreconditionError, "not connected"):
            await client.create_tournament(_create_params())
        self.rpc.get_account_data.assert_not_awaited()


class JoinTournamentTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.keypair = Keypair()
        self.rpc = _rpc()
        self.client = FusionClient(
            DEFAULT_CONFIG, self.rpc, KeypairWallet.from_keypair(self.keypair), clock=lambda: NOW
        )

    async def test_joins_with_sufficient_balance(self) -> None:
        owner = self.keypair.pubkey()
        self.rpc.get_account_data.return_value = _tournament_data(2, 10_000_000)
        self.rpc.get_token_accounts.return_value = [(Pubkey.new_unique(), _token_account(owner, 25_000_000))]

        signature = await self.client.join_tournament(
            JoinTournamentParams(tournament_id=2, team_name="Invincibles", player_ids=SQUAD)
        )

        self.assertEqual(signature, Signature.default())
        keys = _sent_transaction(self.rpc).message.account_keys
        self.assertIn(derive_team_address(DEFAULT_CONFIG, 2, owner), keys)

    async def test_wrong_squad_size_rejected_before_rpc(self) -> None:
        with self.assertRaisesRegex(PreconditionError, "exactly 15"):
            await self.client.join_tournament(
                JoinTournamentParams(tournament_id=2, team_name="Invincibles", player_ids=SQUAD[:14])
            )
        self.rpc.get_account_data.assert_not_awaited()
        self.rpc.get_latest_blockhash.assert_not_awaited()

    async def test_insufficient_balance(self) -> None:
        owner = self.keypair.pubkey()
        self.rpc.get_account_data.return_value = _tournament_data(2, 10_000_000)
        self.rpc.get_token_accounts.return_value = [(Pubkey.new_unique(), _token_account(owner, 9_999_999))]

        with self.assertRaisesRegex(PreconditionError, "Insufficient USDC"):
            await self.client.join_tournament(
                JoinTournamentParams(tournament_id=2, team_name="Invincibles", player_ids=SQUAD)
            )
        self.rpc.send_raw_transaction.assert_not_awaited()

    async def test_unknown_tournament(self) -> None:
        with self.assertRaisesRegex(PreconditionError, "not found"):
            await self.client.join_tournament(
                JoinTournamentParams(tournament_id=99, team_name="Invincibles", player_ids=SQUAD)
            )

    async def test_skip_balance_check(self) -> None:
        await self.client.join_tournament(
            JoinTournamentParams(tournament_id=99, team_name="Invincibles", player_ids=SQUAD),
            check_balance=False,
        )
        self.rpc.get_account_data.assert_not_awaited()
        self.rpc.send_raw_transaction.assert_awaited_once()


class ReadTests(unittest.IsolatedAsyncioTestCase):
    async def test_get_tournament_absent_returns_none(self) -> None:
        rpc = _rpc()
        client = FusionClient(DEFAULT_CONFIG, rpc, KeypairWallet("id.json"))
        self.assertIsNone(await client.get_tournament(7))
        rpc.get_account_data.assert_awaited_once_with(derive_tournament_address(DEFAULT_CONFIG, 7))

    async def test_get_tournament_decodes(self) -> None:
        rpc = _rpc()
        rpc.get_account_data.return_value = _tournament_data(7, 5_000_000)
        client = FusionClient(DEFAULT_CONFIG, rpc, KeypairWallet("id.json"))
        tournament = await client.get_tournament(7)
        self.assertEqual(tournament.id, 7)
        self.assertEqual(tournament.entry_fee, 5.0)
        self.assertTrue(tournament.is_open)

    async def test_get_balances_for_explicit_owner(self) -> None:
        rpc = _rpc()
        rpc.get_balance.return_value = 1_000_000_000
        client = FusionClient(DEFAULT_CONFIG, rpc, KeypairWallet("id.json"))
        balances = await client.get_balances(Pubkey.new_unique())
        self.assertEqual(balances.sol, 1.0)


if __name__ == "__main__":
    unittest.main()
