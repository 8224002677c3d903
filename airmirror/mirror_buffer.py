"""Decryption of the AES-CTR encrypted screen mirroring video stream."""

from .crypto import AES_128_BLOCK_SIZE, AesCtr, Sha512

AESKEY_LEN = 16
_U64_MASK = 0xFFFFFFFFFFFFFFFF


class MirrorBuffer:
    """Decrypts mirroring payloads whose lengths need not be block aligned."""

    def __init__(self, logger, aeskey):
        aeskey = bytes(aeskey)
        if len(aeskey) != AESKEY_LEN:
            raise ValueError(f"audio AES key must be {AESKEY_LEN} bytes")
        self.logger = logger
        self._aeskey_audio = aeskey
        self._aes = None
        self._next_decrypt_count = 0
        self._og = bytes(AES_128_BLOCK_SIZE)

    def _derive(self, label, stream_connection_id):
        sha = Sha512()
        sha.update(f"{label}{stream_connection_id & _U64_MASK}".encode("ascii"))
        sha.update(self._aeskey_audio)
        return sha.final()[:AES_128_BLOCK_SIZE]

    def init_aes(self, stream_connection_id):
        """Derive the video key and IV from the connection id and the audio key."""
        key = self._derive("AirPlayStreamKey", stream_connection_id)
        iv = self._derive("AirPlayStreamIV", stream_connection_id)
        self._aes = AesCtr(key, iv)
        self._next_decrypt_count = 0

    def decrypt(self, data):
        """Decrypt ``data``, continuing the keystream from the previous call."""
        if self._aes is None:
            raise RuntimeError("init_aes() must be called before decrypt()")
        data = bytes(data)
        pending = self._next_decrypt_count
        leftover = self._og[AES_128_BLOCK_SIZE - pending:]

        head = min(pending, len(data))
        output = bytearray(a ^ b for a, b in zip(data[:head], leftover))
        if len(data) < pending:
            self._next_decrypt_count = pending - head
            return bytes(output)

        rest = data[pending:]
        encrypt_len = len(rest) // AES_128_BLOCK_SIZE * AES_128_BLOCK_SIZE
        self._aes.start_fresh_block()
        output += self._aes.decrypt(rest[:encrypt_len])

        tail = rest[encrypt_len:]
        self._next_decrypt_count = 0
        if tail:
            padded = tail + bytes(AES_128_BLOCK_SIZE - len(tail))
            self._og = self._aes.decrypt(padded)
            output += self._og[:len(tail)]
            self._next_decrypt_count = AES_128_BLOCK_SIZE - len(tail)
        return bytes(output)