import hashlib

import pytest

from airmirror.crypto import (
    AesCbc,
    AesCtr,
    AesDirection,
    Ed25519Key,
    Sha512,
    X25519Key,
)

KEY = bytes(range(16))
IV = bytes(range(16, 32))

NIST_KEY = bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c")
NIST_PT = bytes.fromhex("6bc1bee22e409f96e93d7e117393172a")


def test_ctr_known_vector():
    ctx = AesCtr(NIST_KEY, bytes.fromhex("f0f1f2f3f4f5f6f7f8f9fafbfcfdfeff"))
    assert ctx.encrypt(NIST_PT) == bytes.fromhex("874d6191b620e3261bef6864990db6ce")


def test_ctr_round_trip():
    plain = b"mirroring stream payload of odd length"
    cipher = AesCtr(KEY, IV).encrypt(plain)
    assert AesCtr(KEY, IV).decrypt(cipher) == plain


def test_ctr_encrypt_tracks_block_offset():
    ctx = AesCtr(KEY, IV)
    ctx.encrypt(bytes(5))
    assert ctx.block_offset == 5
    ctx.encrypt(bytes(13))
    assert ctx.block_offset == 2


def test_ctr_start_fresh_block_skips_to_boundary():
    keystream = AesCtr(KEY, IV).encrypt(bytes(32))
    ctx = AesCtr(KEY, IV)
    ctx.encrypt(bytes(5))
    ctx.start_fresh_block()
    assert ctx.block_offset == 0
    assert ctx.encrypt(bytes(16)) == keystream[16:32]


def test_ctr_decrypt_does_not_move_block_offset():
    keystream = AesCtr(KEY, IV).encrypt(bytes(32))
    ctx = AesCtr(KEY, IV)
    ctx.decrypt(bytes(5))
    assert ctx.block_offset == 0
    ctx.start_fresh_block()
    assert ctx.decrypt(bytes(16)) == keystream[5:21]


def test_ctr_reset_restarts_keystream():
    ctx = AesCtr(KEY, IV)
    first = ctx.encrypt(bytes(20))
    ctx.reset()
    assert ctx.encrypt(bytes(20)) == first


def test_ctr_rejects_bad_key_length():
    with pytest.raises(ValueError):
        AesCtr(bytes(15), IV)


def test_cbc_known_vector():
    ctx = AesCbc(NIST_KEY, bytes(range(16)), AesDirection.ENCRYPT)
    assert ctx.encrypt(NIST_PT) == bytes.fromhex("7649abac8119b246cee98e9b12e9197d")


def test_cbc_round_trip_and_chaining():
    plain = bytes(range(48))
    whole = AesCbc(KEY, IV, AesDirection.ENCRYPT).encrypt(plain)
    enc = AesCbc(KEY, IV, AesDirection.ENCRYPT)
    pieces = enc.encrypt(plain[:16]) + enc.encrypt(plain[16:])
    assert pieces == whole
    assert AesCbc(KEY, IV, AesDirection.DECRYPT).decrypt(whole) == plain


def test_cbc_reset():
    enc = AesCbc(KEY, IV, AesDirection.ENCRYPT)
    first = enc.encrypt(bytes(16))
    enc.reset()
    assert enc.encrypt(bytes(16)) == first


def test_cbc_wrong_direction_raises():
    with pytest.raises(RuntimeError):
        AesCbc(KEY, IV, AesDirection.DECRYPT).encrypt(bytes(16))
    with pytest.raises(RuntimeError):
        AesCbc(KEY, IV, AesDirection.ENCRYPT).decrypt(bytes(16))


def test_cbc_partial_block_raises():
    with pytest.raises(ValueError):
        AesCbc(KEY, IV, AesDirection.ENCRYPT).encrypt(bytes(10))


def test_x25519_shared_secret_agrees():
    ours = X25519Key.generate()
    theirs = X25519Key.generate()
    peer_of_ours = X25519Key.from_raw(theirs.to_raw())
    peer_of_theirs = X25519Key.from_raw(ours.to_raw())
    secret = ours.derive_secret(peer_of_ours)
    assert len(secret) == 32
    assert secret == theirs.derive_secret(peer_of_theirs)


def test_x25519_raw_round_trip():
    key = X25519Key.generate()
    raw = key.to_raw()
    assert len(raw) == 32
    assert X25519Key.from_raw(raw).to_raw() == raw


def test_x25519_public_only_cannot_derive():
    public = X25519Key.from_raw(X25519Key.generate().to_raw())
    with pytest.raises(ValueError):
        public.derive_secret(X25519Key.generate())


def test_x25519_bad_raw_length():
    with pytest.raises(ValueError):
        X25519Key.from_raw(bytes(31))


def test_ed25519_sign_and_verify():
    key = Ed25519Key.generate()
    signature = key.sign(b"message")
    assert len(signature) == 64
    assert key.verify(signature, b"message") is True
    assert key.verify(signature, b"other") is False


def test_ed25519_public_key_verifies():
    key = Ed25519Key.generate()
    signature = key.sign(b"data")
    public = Ed25519Key.from_raw(key.to_raw())
    assert public.verify(signature, b"data") is True
    with pytest.raises(ValueError):
        public.sign(b"data")


def test_ed25519_copy_shares_key():
    key = Ed25519Key.generate()
    dup = key.copy()
    assert dup.to_raw() == key.to_raw()
    assert key.verify(dup.sign(b"x"), b"x") is True


def test_ed25519_bad_raw_length():
    with pytest.raises(ValueError):
        Ed25519Key.from_raw(bytes(33))


def test_sha512_matches_hashlib_and_resets():
    ctx = Sha512()
    ctx.update(b"ab")
    ctx.update(b"c")
    assert ctx.final() == hashlib.sha512(b"abc").digest()
    with pytest.raises(RuntimeError):
        ctx.update(b"more")
    ctx.reset()
    ctx.update(b"xyz")
    assert ctx.final() == hashlib.sha512(b"xyz").digest()