"""Null-data (OP_RETURN) script building and parsing.

Cash Account marker records are unspendable outputs of the form
``OP_RETURN <push> <push> ...``. This module encodes data pushes with the
minimal push rules and splits a null-data script back into its pushes.
"""

from __future__ import annotations

import enum
import struct

# ---------------------------------------------------------------------------
# Opcodes
# ---------------------------------------------------------------------------


class OpCode(int, enum.Enum):
    """Opcodes that appear in null-data scripts."""

    OP_0 = 0x00
    OP_PUSHDATA1 = 0x4C
    OP_PUSHDATA2 = 0x4D
    OP_PUSHDATA4 = 0x4E
    OP_RETURN = 0x6A


_MAX_DIRECT_PUSH = 0x4B


# ---------------------------------------------------------------------------
# Data push helpers
# ---------------------------------------------------------------------------


def push_data(data: bytes) -> bytes:
    """Encode a data push operation using minimal encoding rules.

    Args:
        data: Arbitrary data bytes.

    Returns:
        The opcode(s) + data for a minimal push of *data*.
    """
    length = len(data)
    if length == 0:
        return bytes([OpCode.OP_0])
    if length <= _MAX_DIRECT_PUSH:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OpCode.OP_PUSHDATA1, length]) + data
    if length <= 0xFFFF:
        return bytes([OpCode.OP_PUSHDATA2]) + struct.pack("<H", length) + data
    return bytes([OpCode.OP_PUSHDATA4]) + struct.pack("<I", length) + data


def op_return_script(*data_items: bytes) -> bytes:
    """Build an ``OP_RETURN <push data1> <push data2> ...`` script."""
    script = bytes([OpCode.OP_RETURN])
    for item in data_items:
        script += push_data(item)
    return script


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def is_null_data(script: bytes) -> bool:
    """Check whether *script* starts with ``OP_RETURN`` or ``OP_0 OP_RETURN``."""
    if not script:
        return False
    if script[0] == OpCode.OP_RETURN:
        return True
    return len(script) >= 2 and script[0] == OpCode.OP_0 and script[1] == OpCode.OP_RETURN


def parse_pushes(script: bytes) -> list[bytes]:
    """Split a null-data script into the data it pushes.

    Args:
        script: ``[OP_0] OP_RETURN`` followed by data pushes only.

    Returns:
        The pushed byte strings in order. ``OP_0`` yields ``b""``.

    Raises:
        ValueError: If the script is not null-data, contains a non-push
            opcode or a push runs past the end of the script.
    """
    if not is_null_data(script):
        msg = "script is not an OP_RETURN output"
        raise ValueError(msg)
    pos = 1 if script[0] == OpCode.OP_RETURN else 2
    pushes: list[bytes] = []
    while pos < len(script):
        opcode = script[pos]
        pos += 1
        if opcode <= _MAX_DIRECT_PUSH:
            length = opcode
        elif opcode == OpCode.OP_PUSHDATA1:
            length, width = _read_length(script, pos, "<B", 1)
            pos += width
        elif opcode == OpCode.OP_PUSHDATA2:
            length, width = _read_length(script, pos, "<H", 2)
            pos += width
        elif opcode == OpCode.OP_PUSHDATA4:
            length, width = _read_length(script, pos, "<I", 4)
            pos += width
        else:
            msg = f"unexpected opcode 0x{opcode:02x} in null-data script"
            raise ValueError(msg)
        if pos + length > len(script):
            msg = "push runs past the end of the script"
            raise ValueError(msg)
        pushes.append(script[pos : pos + length])
        pos += length
    return pushes


def _read_length(script: bytes, pos: int, fmt: str, width: int) -> tuple[int, int]:
    if pos + width > len(script):
        msg = "truncated push length"
        raise ValueError(msg)
    (length,) = struct.unpack_from(fmt, script, pos)
    return length, width
