# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of PlasmaChain - see LICENSE and TRADEMARKS.md
# Refs: Plasma-MVP; Cosmos-SDK-AnteHandler

import pytest

from plasmachain.auth.ante import Accept, AnteHandler, Reject, apply_fees, new_ante_handler
from plasmachain.auth.errors import AuthError, RejectReason
from plasmachain.auth.sig_verify import verify_confirm_signatures, verify_input_signature
from plasmachain.core.msg import Msg
from plasmachain.core.position import Position
from plasmachain.core.tx import BaseTx
from plasmachain.core.utxo import UTXO
from plasmachain.storage.utxo import MemoryUTXOMapper
from plasmachain.utils import config as CFG
from signing import build_spend, confirm, sign_tx

POS_A = Position(100, 0, 0, 0)
POS_B = Position(101, 2, 1, 0)


@pytest.fixture
def single_input(mapper, alice, bob):
    """alice owns POS_A, funded by bob alone."""
    mapper.add_utxo(UTXO(alice.address, [bob.address, CFG.ZERO_ADDRESS], POS_A, denom=100))
    return mapper


@pytest.fixture
def two_inputs(single_input, carol, bob, dave):
    """Adds POS_B owned by carol, funded by bob and dave."""
    single_input.add_utxo(UTXO(carol.address, [bob.address, dave.address], POS_B, denom=50))
    return single_input


def _two_input_tx(alice, bob, carol, dave, *, confirm2=None, fee=3):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob),
                      position2=POS_B, owner2=carol,
                      confirm_sigs2=confirm(POS_B, bob, dave) if confirm2 is None else confirm2,
                      denom1=140, fee=fee)
    return sign_tx(msg, alice, carol)


# -----------------------------
# Accept paths
# -----------------------------

def test_single_input_spend_is_accepted(single_input, handler, alice, bob):
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob), fee=7), alice)
    res = handler(tx, check_tx=False, fee_amount=10)
    assert res == Accept(fee_delta=7, fee_amount=17)
    assert res.ok


def test_two_input_spend_is_accepted(two_inputs, handler, alice, bob, carol, dave):
    res = handler(_two_input_tx(alice, bob, carol, dave, fee=3), check_tx=False)
    assert isinstance(res, Accept)
    assert res.fee_amount == 3


def test_check_tx_never_touches_fees(single_input, handler, alice, bob):
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob), fee=7), alice)
    res = handler(tx, check_tx=True, fee_amount=10)
    assert res == Accept(fee_delta=0, fee_amount=10)


def test_reject_leaves_fee_amount_alone(single_input, handler, alice, bob, carol):
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob), fee=7), carol)
    res = handler(tx, check_tx=False, fee_amount=10)
    assert isinstance(res, Reject)
    assert res.fee_amount == 10
    assert not res.ok


def test_authorize_is_idempotent(single_input, handler, alice, bob):
    good = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob), fee=2), alice)
    bad = sign_tx(build_spend(POS_A, alice, confirm(POS_A, alice), fee=2), alice)
    for tx in (good, bad):
        first = handler(tx, check_tx=False, fee_amount=5)
        second = handler(tx, check_tx=False, fee_amount=5)
        assert first == second


def test_second_slot_ignored_when_owner2_is_zero(single_input, handler, alice, bob):
    # garbage in every slot-2 field, but owner2 stays zero
    msg = build_spend(POS_A, alice, confirm(POS_A, bob),
                      position2=Position(999, 9, 9, 9), confirm_sigs2=[b"junk", b"\x00" * 70], fee=1)
    res = handler(sign_tx(msg, alice), check_tx=False)
    assert res == Accept(fee_delta=1, fee_amount=1)


def test_second_confirm_sig_skipped_for_zero_input_address(single_input, handler, alice, bob, carol):
    # POS_A has a single funder, so whatever sits in the second confirm slot is ignored
    sigs = confirm(POS_A, bob) + [carol.sign(b"unrelated")]
    res = handler(sign_tx(build_spend(POS_A, alice, sigs), alice), check_tx=True)
    assert res.ok


def test_worked_example_from_position_100(mapper, handler, alice, bob):
    mapper.add_utxo(UTXO(alice.address, [bob.address, CFG.ZERO_ADDRESS], Position(100, 0, 0, 0)))
    msg = build_spend(Position(100, 0, 0, 0), alice, confirm(Position(100, 0, 0, 0), bob), fee=25)
    fee_amount, results = apply_fees(handler, [sign_tx(msg, alice)], fee_amount=0)
    assert fee_amount == 25
    assert results == [Accept(fee_delta=25, fee_amount=25)]


# -----------------------------
# Structural rejects
# -----------------------------

def _reason(res):
    assert isinstance(res, Reject), res
    return res.reason


def test_no_signatures(single_input, handler, alice, bob):
    tx = BaseTx(build_spend(POS_A, alice, confirm(POS_A, bob)), [])
    assert _reason(handler(tx, check_tx=False)) == RejectReason.NO_SIGNERS


def test_wrong_tx_shape(handler, alice):
    class ForeignTx:
        def get_signatures(self):
            return [alice.sign(b"x")]

    assert _reason(handler(ForeignTx(), check_tx=False)) == RejectReason.WRONG_TX_SHAPE
    assert _reason(handler(object(), check_tx=False)) == RejectReason.NO_SIGNERS


def test_signer_count_mismatch(two_inputs, handler, alice, bob, carol, dave):
    tx = _two_input_tx(alice, bob, carol, dave)
    short = BaseTx(tx.get_msg(), tx.get_signatures()[:1])
    assert _reason(handler(short, check_tx=False)) == RejectReason.SIGNER_COUNT_MISMATCH

    single = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob)), alice)
    extra = BaseTx(single.get_msg(), single.get_signatures() * 2)
    assert _reason(handler(extra, check_tx=False)) == RejectReason.SIGNER_COUNT_MISMATCH


def test_wrong_message_shape(handler, alice):
    class ExitMsg(Msg):
        def get_signers(self):
            return [alice.address]

    tx = BaseTx(ExitMsg(), [alice.sign(b"exit")])
    assert _reason(handler(tx, check_tx=False)) == RejectReason.WRONG_MESSAGE_SHAPE


def test_negative_fee_never_lowers_the_counter(single_input, handler, alice, bob):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob), fee=5)
    msg.fee = -50
    tx = sign_tx(msg, alice)
    for check_tx in (True, False):
        res = handler(tx, check_tx=check_tx, fee_amount=10)
        assert _reason(res) == RejectReason.WRONG_MESSAGE_SHAPE
        assert res.fee_amount == 10

    # decoded transactions never get that far
    with pytest.raises(ValueError, match="fee"):
        BaseTx.from_dict(tx.to_dict())
    with pytest.raises(ValueError, match="fee"):
        build_spend(POS_A, alice, confirm(POS_A, bob), fee=-1)


# -----------------------------
# Input signature rejects
# -----------------------------

def test_unknown_utxo(handler, alice, bob):
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob)), alice)
    res = handler(tx, check_tx=False)
    assert _reason(res) == RejectReason.UNKNOWN_UTXO
    assert res.slot == 1


def test_owner_mismatch(single_input, handler, bob, carol):
    # carol declares herself owner of alice's output and signs honestly
    tx = sign_tx(build_spend(POS_A, carol, confirm(POS_A, bob)), carol)
    assert _reason(handler(tx, check_tx=False)) == RejectReason.OWNER_MISMATCH


def test_signature_by_someone_else(single_input, handler, alice, bob, carol):
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob)), carol)
    assert _reason(handler(tx, check_tx=False)) == RejectReason.SIGNATURE_MISMATCH


def test_malformed_ownership_signature(single_input, handler, alice, bob):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob))
    tx = BaseTx(msg, [b"\x00" * 70])
    assert _reason(handler(tx, check_tx=False)) == RejectReason.SIGNATURE_INVALID


def test_flipped_ownership_signature_byte_never_accepts(single_input, handler, alice, bob):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob), fee=1)
    sig = alice.sign(msg.get_sign_bytes())
    for i in range(len(sig)):
        tampered = bytearray(sig)
        tampered[i] ^= 0x80
        res = handler(BaseTx(msg, [bytes(tampered)]), check_tx=False)
        assert _reason(res) in (RejectReason.SIGNATURE_MISMATCH, RejectReason.SIGNATURE_INVALID)


def test_signature_over_other_message(single_input, handler, alice, bob):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob), fee=1)
    other = build_spend(POS_A, alice, confirm(POS_A, bob), fee=100)
    tx = BaseTx(msg, [alice.sign(other.get_sign_bytes())])
    assert _reason(handler(tx, check_tx=False)) == RejectReason.SIGNATURE_MISMATCH


# -----------------------------
# Confirm signature rejects
# -----------------------------

def test_first_confirm_by_wrong_key(single_input, handler, alice, carol):
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, carol)), alice)
    res = handler(tx, check_tx=False)
    assert _reason(res) == RejectReason.CONFIRM_SIGNATURE_MISMATCH
    assert (res.slot, res.which) == (1, "first")


def test_confirm_by_owner_is_not_enough(single_input, handler, alice):
    # alice owns the output, but bob created it
    tx = sign_tx(build_spend(POS_A, alice, confirm(POS_A, alice)), alice)
    assert _reason(handler(tx, check_tx=False)) == RejectReason.CONFIRM_SIGNATURE_MISMATCH


def test_confirm_over_other_position(single_input, handler, alice, bob):
    tx = sign_tx(build_spend(POS_A, alice, confirm(Position(100, 0, 0, 1), bob)), alice)
    assert _reason(handler(tx, check_tx=False)) == RejectReason.CONFIRM_SIGNATURE_MISMATCH


def test_missing_first_confirm(single_input, handler, alice):
    tx = sign_tx(build_spend(POS_A, alice, []), alice)
    res = handler(tx, check_tx=False)
    assert (res.reason, res.which) == (RejectReason.CONFIRM_SIGNATURE_MISMATCH, "first")


def test_second_input_missing_second_confirm(two_inputs, handler, alice, bob, carol, dave):
    tx = _two_input_tx(alice, bob, carol, dave, confirm2=confirm(POS_B, bob))
    res = handler(tx, check_tx=False)
    assert _reason(res) == RejectReason.CONFIRM_SIGNATURE_MISMATCH
    assert (res.slot, res.which) == (2, "second")


def test_second_input_corrupt_second_confirm(two_inputs, handler, alice, bob, carol, dave):
    good = confirm(POS_B, bob, dave)
    corrupt = bytearray(good[1])
    corrupt[40] ^= 0xFF
    tx = _two_input_tx(alice, bob, carol, dave, confirm2=[good[0], bytes(corrupt)])
    res = handler(tx, check_tx=False)
    assert (res.reason, res.slot, res.which) == (RejectReason.CONFIRM_SIGNATURE_MISMATCH, 2, "second")


def test_second_input_unknown_utxo(single_input, handler, alice, bob, carol, dave):
    res = handler(_two_input_tx(alice, bob, carol, dave), check_tx=False)
    assert (res.reason, res.slot) == (RejectReason.UNKNOWN_UTXO, 2)


def test_first_failure_wins(mapper, handler, alice, bob, carol, dave):
    # both inputs unknown: the first one is reported
    res = handler(_two_input_tx(alice, bob, carol, dave), check_tx=False)
    assert (res.reason, res.slot) == (RejectReason.UNKNOWN_UTXO, 1)


# -----------------------------
# Verifier functions and helpers
# -----------------------------

def test_verifiers_raise_auth_error(single_input, alice, bob, carol):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob))
    verify_input_signature(single_input, POS_A, alice.address, alice.sign(msg.get_sign_bytes()), msg.get_sign_bytes())
    verify_confirm_signatures(single_input, POS_A, confirm(POS_A, bob), POS_A.get_sign_bytes())

    with pytest.raises(AuthError) as exc:
        verify_confirm_signatures(single_input, POS_A, confirm(POS_A, carol), POS_A.get_sign_bytes(), slot=1)
    assert exc.value.reason == RejectReason.CONFIRM_SIGNATURE_MISMATCH
    assert "confirm=first" in str(exc.value)


def test_reject_messages_name_the_position(single_input, handler, alice, bob, carol):
    msg = build_spend(POS_A, alice, confirm(POS_A, bob))
    cases = [
        (BaseTx(msg, [b"\x00" * 70]), RejectReason.SIGNATURE_INVALID),
        (sign_tx(msg, carol), RejectReason.SIGNATURE_MISMATCH),
        (sign_tx(build_spend(POS_A, alice, confirm(POS_A, carol)), alice), RejectReason.CONFIRM_SIGNATURE_MISMATCH),
        (sign_tx(build_spend(POS_A, alice, []), alice), RejectReason.CONFIRM_SIGNATURE_MISMATCH),
    ]
    for tx, reason in cases:
        res = handler(tx, check_tx=False)
        assert _reason(res) == reason
        assert str(POS_A) in res.message


def test_apply_fees_skips_rejected(single_input, handler, alice, bob, carol):
    good = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob), fee=4), alice)
    bad = sign_tx(build_spend(POS_A, alice, confirm(POS_A, bob), fee=90), carol)
    total, results = apply_fees(handler, [good, bad, good], fee_amount=1)
    assert total == 9
    assert [r.ok for r in results] == [True, False, True]


def test_handler_requires_mapper():
    with pytest.raises(TypeError):
        AnteHandler({})
    assert isinstance(new_ante_handler(MemoryUTXOMapper()), AnteHandler)
