"""
Memory Zeroization Utilities
============================

Best-effort wiping of key material held in mutable buffers.

WARNING:
- Python's memory model doesn't guarantee secure erasure
- Immutable ``bytes``/``str`` copies cannot be wiped
"""

from __future__ import annotations

import ctypes


def secure_zero(data: bytearray) -> None:
    """
    Overwrite a byte buffer with zeros in place.

    Args:
        data: Mutable byte buffer to zero
    """
    if len(data) == 0:
        return

    addr = ctypes.addressof((ctypes.c_char * len(data)).from_buffer(data))
    ctypes.memset(addr, 0, len(data))
