"""AES-128 (CTR and CBC), X25519, Ed25519 and SHA-512 helpers."""

import hashlib
from enum import IntEnum

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

AES_128_BLOCK_SIZE = 16
X25519_KEY_SIZE = 32
ED25519_KEY_SIZE = 32

_RAW = serialization.Encoding.Raw
_RAW_PUBLIC = serialization.PublicFormat.Raw


class AesDirection(IntEnum):
    """Direction an AES context was set up for."""

    DECRYPT = 0
    ENCRYPT = 1


def _check_block(name, value):
    value = bytes(value)
    if len(value) != AES_128_BLOCK_SIZE:
        raise ValueError(f"{name} must be {AES_128_BLOCK_SIZE} bytes, got {len(value)}")
    return value


class AesCtr:
    """Streaming AES-128 in counter mode that tracks its position within a block."""

    def __init__(self, key, iv):
        self._key = _check_block("key", key)
        self._iv = _check_block("iv", iv)
        self.block_offset = 0
        self._context = self._new_context()

    def _new_context(self):
        return Cipher(algorithms.AES(self._key), modes.CTR(self._iv)).encryptor()

    def encrypt(self, data):
        """Encrypt ``data`` and advance the block offset."""
        out = self._context.update(bytes(data))
        self.block_offset = (self.block_offset + len(data)) % AES_128_BLOCK_SIZE
        return out

    def decrypt(self, data):
        """Decrypt ``data``; unlike :meth:`encrypt` this leaves the block offset alone."""
        return self._context.update(bytes(data))

    def start_fresh_block(self):
        """Discard keystream up to the next block boundary reached by :meth:`encrypt`."""
        if self.block_offset == 0:
            return
        self.encrypt(bytes(AES_128_BLOCK_SIZE - self.block_offset))

    def reset(self):
        """Restart the keystream from the original key and IV."""
        self._context = self._new_context()


class AesCbc:
    """AES-128 in CBC mode without padding, chaining across calls."""

    def __init__(self, key, iv, direction):
        self._key = _check_block("key", key)
        self._iv = _check_block("iv", iv)
        self.direction = AesDirection(direction)
        self._context = self._new_context()

    def _new_context(self):
        cipher = Cipher(algorithms.AES(self._key), modes.CBC(self._iv))
        if self.direction is AesDirection.ENCRYPT:
            return cipher.encryptor()
        return cipher.decryptor()

    def _process(self, data):
        data = bytes(data)
        if len(data) % AES_128_BLOCK_SIZE:
            raise ValueError("data length must be a multiple of the AES block size")
        return self._context.update(data)

    def encrypt(self, data):
        """Encrypt whole blocks of ``data``."""
        if self.direction is not AesDirection.ENCRYPT:
            raise RuntimeError("context was set up for decryption")
        return self._process(data)

    def decrypt(self, data):
        """Decrypt whole blocks of ``data``."""
        if self.direction is not AesDirection.DECRYPT:
            raise RuntimeError("context was set up for encryption")
        return self._process(data)

    def reset(self):
        """Restart the chain from the original key and IV."""
        self._context = self._new_context()


def _check_raw(data, size):
    data = bytes(data)
    if len(data) != size:
        raise ValueError(f"raw key must be {size} bytes, got {len(data)}")
    return data


class X25519Key:
    """An X25519 key: a generated key pair or a peer's public key."""

    def __init__(self, key):
        if isinstance(key, x25519.X25519PrivateKey):
            self._private = key
            self._public = key.public_key()
        elif isinstance(key, x25519.X25519PublicKey):
            self._private = None
            self._public = key
        else:
            raise TypeError("expected an X25519 private or public key")

    @classmethod
    def generate(cls):
        """Generate a new key pair."""
        return cls(x25519.X25519PrivateKey.generate())

    @classmethod
    def from_raw(cls, data):
        """Load a public key from its raw bytes."""
        raw = _check_raw(data, X25519_KEY_SIZE)
        return cls(x25519.X25519PublicKey.from_public_bytes(raw))

    def to_raw(self):
        """Return the raw public key bytes."""
        return self._public.public_bytes(_RAW, _RAW_PUBLIC)

    def derive_secret(self, theirs):
        """Compute the shared secret with the peer key ``theirs``."""
        if self._private is None:
            raise ValueError("deriving a secret needs a private key")
        return self._private.exchange(theirs._public)


class Ed25519Key:
    """An Ed25519 key: a generated signing key or a peer's public key."""

    def __init__(self, key):
        if isinstance(key, ed25519.Ed25519PrivateKey):
            self._private = key
            self._public = key.public_key()
        elif isinstance(key, ed25519.Ed25519PublicKey):
            self._private = None
            self._public = key
        else:
            raise TypeError("expected an Ed25519 private or public key")

    @classmethod
    def generate(cls):
        """Generate a new signing key."""
        return cls(ed25519.Ed25519PrivateKey.generate())

    @classmethod
    def from_raw(cls, data):
        """Load a public key from its raw bytes."""
        raw = _check_raw(data, ED25519_KEY_SIZE)
        return cls(ed25519.Ed25519PublicKey.from_public_bytes(raw))

    def to_raw(self):
        """Return the raw public key bytes."""
        return self._public.public_bytes(_RAW, _RAW_PUBLIC)

    def copy(self):
        """Return a new wrapper sharing the same underlying key."""
        return Ed25519Key(self._private if self._private is not None else self._public)

    def sign(self, data):
        """Sign ``data`` and return the 64 byte signature."""
        if self._private is None:
            raise ValueError("signing needs a private key")
        return self._private.sign(bytes(data))

    def verify(self, signature, data):
        """Return whether ``signature`` is valid for ``data``."""
        try:
            self._public.verify(bytes(signature), bytes(data))
        except InvalidSignature:
            return False
        return True


class Sha512:
    """Incremental SHA-512 digest that can be reset and reused."""

    def __init__(self):
        self._hash = hashlib.sha512()
        self._finished = False

    def update(self, data):
        """Feed ``data`` into the digest."""
        if self._finished:
            raise RuntimeError("digest already finalised; call reset() first")
        self._hash.update(bytes(data))

    def final(self):
        """Return the 64 byte digest; further updates need a reset."""
        self._finished = True
        return self._hash.digest()

    def reset(self):
        """Start a fresh digest."""
        self._hash = hashlib.sha512()
        self._finished = False