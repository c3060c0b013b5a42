from dataclasses import dataclass
from typing import Tuple
import struct

from config import INT16_MIN, INT16_MAX

LENGTH = struct.Struct('>I')
INT16 = struct.Struct('>h')


def _check_int16(value: int):
    if not INT16_MIN <= value <= INT16_MAX:
        raise ValueError(f"{value} is outside the signed 16-bit range")


def encode_field(data: bytes) -> bytes:
    return LENGTH.pack(len(data)) + data


@dataclass(frozen=True)
class AuthRequest:
    username: str
    secret: bytes

    def to_bytes(self) -> bytes:
        return encode_field(self.username.encode()) + encode_field(self.secret)


@dataclass(frozen=True)
class VectorRequest:
    elements: Tuple[int, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'elements', tuple(self.elements))
        for value in self.elements:
            _check_int16(value)

    def to_bytes(self) -> bytes:
        count = len(self.elements)
        return LENGTH.pack(count) + struct.pack(f'>{count}h', *self.elements)

    @staticmethod
    def from_payload(count: int, payload: bytes) -> "VectorRequest":
        return VectorRequest(struct.unpack(f'>{count}h', payload))


@dataclass(frozen=True)
class ProductResult:
    value: int

    def __post_init__(self):
        _check_int16(self.value)

    def to_bytes(self) -> bytes:
        return INT16.pack(self.value)

    @staticmethod
    def from_bytes(data: bytes) -> "ProductResult":
        (value,) = INT16.unpack(data)
        return ProductResult(value)
