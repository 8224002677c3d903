"""Building blocks for a screen-mirroring receiver: HTTP/RTSP parsing and serving, stream decryption, crypto helpers and logging."""

__version__ = "0.1.0"