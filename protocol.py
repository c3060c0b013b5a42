import socket
from typing import Iterable

from config import AUTH_FAIL, AUTH_OK, MAX_FIELD_BYTES, MAX_VECTOR_LEN
from messages import INT16, LENGTH, AuthRequest, ProductResult, VectorRequest

# Framing, all integers big-endian:
#   field:  [4-byte length][bytes]
#   auth:   field(username) field(secret)  ->  [1-byte status]
#   vector: [4-byte count][count x int16]  ->  [int16 product]


class ProtocolError(Exception):
    """Base class for wire protocol failures."""


class FramingError(ProtocolError):
    """The peer sent bytes that do not form a valid frame."""


class ConnectionClosed(ProtocolError):
    """The peer closed the connection."""

    def __init__(self, mid_frame: bool):
        self.mid_frame = mid_frame
        super().__init__("connection closed mid-frame" if mid_frame else "connection closed")


def _recv_exact(sock: socket.socket, n: int, in_frame: bool = True) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise ConnectionClosed(mid_frame=in_frame or bool(buf))
        buf.extend(chunk)
    return bytes(buf)


def _recv_length(sock: socket.socket, limit: int, in_frame: bool = True) -> int:
    (length,) = LENGTH.unpack(_recv_exact(sock, LENGTH.size, in_frame))
    if length > limit:
        raise FramingError(f"length {length} exceeds limit {limit}")
    return length


def recv_field(sock: socket.socket, in_frame: bool = True) -> bytes:
    length = _recv_length(sock, MAX_FIELD_BYTES, in_frame)
    return _recv_exact(sock, length)


def send_credentials(sock: socket.socket, username: str, secret: bytes):
    sock.sendall(AuthRequest(username, secret).to_bytes())


def recv_credentials(sock: socket.socket) -> AuthRequest:
    raw_username = recv_field(sock, in_frame=False)
    secret = recv_field(sock)
    try:
        username = raw_username.decode()
    except UnicodeDecodeError as e:
        raise FramingError(f"username is not valid UTF-8: {e}") from e
    return AuthRequest(username, secret)


def send_auth_status(sock: socket.socket, ok: bool):
    sock.sendall(AUTH_OK if ok else AUTH_FAIL)


def recv_auth_status(sock: socket.socket) -> bool:
    status = _recv_exact(sock, 1, in_frame=False)
    if status == AUTH_OK:
        return True
    if status == AUTH_FAIL:
        return False
    raise FramingError(f"unknown authentication status {status!r}")


def send_vector(sock: socket.socket, elements: Iterable[int]):
    sock.sendall(VectorRequest(tuple(elements)).to_bytes())


def recv_vector(sock: socket.socket) -> VectorRequest:
    count = _recv_length(sock, MAX_VECTOR_LEN, in_frame=False)
    payload = _recv_exact(sock, count * INT16.size) if count else b''
    return VectorRequest.from_payload(count, payload)


def send_result(sock: socket.socket, value: int):
    sock.sendall(ProductResult(value).to_bytes())


def recv_result(sock: socket.socket) -> int:
    return ProductResult.from_bytes(_recv_exact(sock, INT16.size, in_frame=False)).value
