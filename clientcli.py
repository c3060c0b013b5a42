import socket
import sys
import argparse
import getpass
from typing import Iterable, List

from config import CLIENT_HOST, PORT
from protocol import send_credentials, recv_auth_status, send_vector, recv_result
from logging_util import setup_logger


class Client:
    def __init__(self, host=CLIENT_HOST, port=PORT, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.logger = setup_logger("client")
        self.client_socket = None

    def connect_to_server(self):
        self.client_socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
        self.logger.info(f"Connected to server at {self.host}:{self.port}")

    def authenticate(self, username: str, secret) -> bool:
        if isinstance(secret, str):
            secret = secret.encode()
        send_credentials(self.client_socket, username, secret)
        return recv_auth_status(self.client_socket)

    def calculate(self, elements: Iterable[int]) -> int:
        send_vector(self.client_socket, elements)
        return recv_result(self.client_socket)

    def close(self):
        if self.client_socket is not None:
            self.client_socket.close()
            self.client_socket = None
            self.logger.info("Disconnected from server")

    def __enter__(self):
        self.connect_to_server()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def parse_vector(text: str) -> List[int]:
    """``"1,-2,3"`` -> ``[1, -2, 3]``; an empty string is the empty vector."""
    return [int(item) for item in text.split(',') if item.strip()]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Vector calculation client")
    parser.add_argument("--host", default=CLIENT_HOST, help="Server host")
    parser.add_argument("--port", type=int, default=PORT, help="Server port")
    parser.add_argument("--user", required=True, help="Username")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    parser.add_argument("vectors", nargs="*", type=parse_vector,
                        help="Comma-separated int16 values, e.g. 2,3,-4")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    password = args.password if args.password is not None else getpass.getpass()
    logger = setup_logger("client")

    with Client(host=args.host, port=args.port) as client:
        if not client.authenticate(args.user, password):
            logger.warning("Authentication failed")
            return 1
        logger.info("Authenticated")
        for vector in args.vectors:
            print(f"{vector} -> {client.calculate(vector)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
