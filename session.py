"""One accepted connection: authentication, then the vector loop."""
import hmac
import socket
from enum import Enum
from typing import Optional

from arithmetic import product
from credentials import CredentialStore
from logging_util import DiagnosticsSink, setup_logger
from protocol import (ConnectionClosed, FramingError, recv_credentials, recv_vector,
                      send_auth_status, send_result)
from utils import md5_digest


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    TERMINATED = "terminated"


class ConnectionSession:
    """Owns one client socket until it terminates.

    The credential store and diagnostics sink are shared with every other
    session; nothing else is.
    """

    def __init__(self, client_socket: socket.socket, client_address,
                 credentials: CredentialStore, diagnostics: DiagnosticsSink,
                 timeout: Optional[float] = None):
        self.client_socket = client_socket
        self.client_address = client_address
        self.credentials = credentials
        self.diagnostics = diagnostics
        self.timeout = timeout
        self.logger = setup_logger("session")
        self.state = SessionState.UNAUTHENTICATED
        self.username: Optional[str] = None
        self.requests_served = 0

    def authenticate(self) -> bool:
        try:
            request = recv_credentials(self.client_socket)
        except FramingError as e:
            send_auth_status(self.client_socket, False)
            self.diagnostics.report(
                f"Malformed authentication request from {self.client_address}: {e}", False)
            return False

        stored = self.credentials.lookup(request.username)
        computed = md5_digest(request.secret)
        if stored is None or not hmac.compare_digest(stored.encode(), computed.encode()):
            send_auth_status(self.client_socket, False)
            self.diagnostics.report(
                f"Authentication failed for user '{request.username}' from {self.client_address}", False)
            return False

        send_auth_status(self.client_socket, True)
        self.username = request.username
        self.state = SessionState.AUTHENTICATED
        self.logger.info(f"User '{self.username}' authenticated from {self.client_address}")
        return True

    def process_vectors(self):
        if self.state is not SessionState.AUTHENTICATED:
            raise RuntimeError(f"cannot process vectors in state {self.state.name}")
        while True:
            try:
                request = recv_vector(self.client_socket)
            except ConnectionClosed as e:
                if e.mid_frame:
                    raise
                return
            send_result(self.client_socket, product(request.elements))
            self.requests_served += 1

    def run(self):
        self.logger.info(f"New connection from {self.client_address}")
        try:
            self.client_socket.settimeout(self.timeout)
            if self.authenticate():
                self.process_vectors()
        except ConnectionClosed as e:
            if e.mid_frame:
                self.diagnostics.report(f"Client {self.client_address} disconnected mid-frame", False)
        except FramingError as e:
            self.diagnostics.report(f"Malformed frame from {self.client_address}: {e}", False)
        except socket.timeout:
            self.diagnostics.report(f"Client {self.client_address} timed out", False)
        except (ConnectionResetError, BrokenPipeError) as e:
            self.diagnostics.report(f"Connection with {self.client_address} lost: {e}", False)
        except OSError as e:
            self.diagnostics.report(f"I/O error with {self.client_address}: {e}", True)
        except Exception as e:
            self.logger.exception(f"Error with {self.client_address}: {e}")
            self.diagnostics.report(f"Unexpected error with {self.client_address}: {e}", True)
        finally:
            self.terminate()

    def terminate(self):
        if self.state is SessionState.TERMINATED:
            return
        self.state = SessionState.TERMINATED
        try:
            self.client_socket.close()
        finally:
            self.logger.info(
                f"Disconnected: {self.client_address} ({self.requests_served} request(s) served)")
