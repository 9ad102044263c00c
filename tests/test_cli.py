import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from fusion import cli
from fusion.config import DEFAULT_CONFIG, load_config
from fusion.errors import PreconditionError, UserRejection
from fusion.pda import derive_team_address, derive_tournament_address
from fusion.transaction import build_transaction

OWNER = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


def _run(argv: list) -> tuple:
    buf = io.StringIO()
    with patch("fusion.cli.resolve_config", return_value=DEFAULT_CONFIG), redirect_stdout(buf):
        code = cli.main(argv)
    return code, buf.getvalue()


class PdaCommandTests(unittest.TestCase):
    def test_tournament_address(self) -> None:
        code, out = _run(["pda", "tournament", "--id", "5"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), str(derive_tournament_address(DEFAULT_CONFIG, 5)))

    def test_team_address(self) -> None:
        code, out = _run(["pda", "team", "--id", "5", "--owner", OWNER])
        self.assertEqual(code, 0)
        expected = derive_team_address(DEFAULT_CONFIG, 5, Pubkey.from_string(OWNER))
        self.assertEqual(out.strip(), str(expected))

    def test_missing_owner(self) -> None:
        code, out = _run(["pda", "player-stats"])
        self.assertEqual(code, 1)
        self.assertIn("--owner is required", out)

    def test_invalid_owner(self) -> None:
        code, out = _run(["pda", "token-account", "--owner", "bogus"])
        self.assertEqual(code, 1)
        self.assertIn("not a valid base58 address", out)


class DiscriminatorCommandTests(unittest.TestCase):
    def test_known_instruction(self) -> None:
        code, out = _run(["discriminator", "create_tournament"])
        self.assertEqual(code, 0)
        self.assertIn("0x9e89e9e74984bf44", out)
        self.assertIn("table", out)

    def test_unknown_instruction_hashed(self) -> None:
        code, out = _run(["discriminator", "distribute_prizes"])
        self.assertEqual(code, 0)
        self.assertIn("sha256", out)


class ConfigCommandTests(unittest.TestCase):
    def test_init_writes_file_and_refuses_overwrite(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "config.toml"
            code, _ = _run(["config", "init", "--out", str(out), "--no-wallet"])
            self.assertEqual(code, 0)
            self.assertFalse(load_config(out).wallet_enabled)

            code, text = _run(["config", "init", "--out", str(out)])
            self.assertEqual(code, 1)
            self.assertIn("already exists", text)


class ExitCodeTests(unittest.TestCase):
    def test_user_rejection_exits_2(self) -> None:
        with patch("fusion.cli._cmd_balance", side_effect=UserRejection("User rejected the request")):
            code, out = _run(["balance"])
        self.assertEqual(code, 2)
        self.assertIn("Cancelled", out)

    def test_precondition_exits_1(self) -> None:
        with patch("fusion.cli._cmd_balance", side_effect=PreconditionError("Wallet not connected")):
            code, out = _run(["balance"])
        self.assertEqual(code, 1)
        self.assertIn("Wallet not connected", out)


class ApprovalPromptTests(unittest.TestCase):
    def _transaction(self) -> Transaction:
        payer = Keypair().pubkey()
        ix = Instruction(DEFAULT_CONFIG.program_id, b"\x00", [AccountMeta(payer, True, True)])
        return build_transaction(ix, payer, Hash.default())

    def test_yes_approves(self) -> None:
        approve = cli._prompt_approval("Join tournament 1")
        with patch("builtins.input", return_value="y"), redirect_stdout(io.StringIO()):
            self.assertTrue(approve(self._transaction()))

    def test_closed_stdin_declines(self) -> None:
        approve = cli._prompt_approval("Join tournament 1")
        for error in (EOFError, KeyboardInterrupt):
            with self.subTest(error=error.__name__):
                with patch("builtins.input", side_effect=error), redirect_stdout(io.StringIO()):
                    self.assertFalse(approve(self._transaction()))


class ParseHelperTests(unittest.TestCase):
    def test_deadline_unix_and_iso(self) -> None:
        self.assertEqual(cli._parse_deadline("1800000000"), 1_800_000_000)
        self.assertEqual(cli._parse_deadline("1970-01-02T00:00:00"), 86_400)
        self.assertEqual(cli._parse_deadline("1970-01-02T01:00:00+01:00"), 86_400)
        with self.assertRaises(PreconditionError):
            cli._parse_deadline("next friday")

    def test_players(self) -> None:
        self.assertEqual(cli._parse_players("1, 2,3,"), [1, 2, 3])
        with self.assertRaises(PreconditionError):
            cli._parse_players("1,x")


if __name__ == "__main__":
    unittest.main()
