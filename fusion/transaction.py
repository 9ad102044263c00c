"""Wrap a single instruction into a transaction and hand it to the wallet."""

from __future__ import annotations

import logging

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from .errors import PreconditionError
from .rpc import FusionRpc
from .wallet import Wallet

logger = logging.getLogger(__name__)


def build_transaction(instruction: Instruction, fee_payer: Pubkey, blockhash: Hash) -> Transaction:
    message = Message.new_with_blockhash([instruction], fee_payer, blockhash)
    return Transaction.new_unsigned(message)


async def submit_instruction(instruction: Instruction, wallet: Wallet, rpc: FusionRpc) -> Signature:
    """Sign and broadcast one instruction with the wallet as fee payer.

    The blockhash is fetched here, right before signing, so it has the full
    validity window. An expired blockhash still surfaces as NetworkError from
    the broadcast.
    """
    fee_payer = wallet.public_key
    if fee_payer is None:
        raise PreconditionError("Wallet not connected")
    blockhash = await rpc.get_latest_blockhash()
    tx = build_transaction(instruction, fee_payer, blockhash)
    logger.debug("submitting instruction for %s with blockhash %s", instruction.program_id, blockhash)
    return await wallet.sign_and_send(tx, rpc)
