import socket
import sys
import threading
import argparse
from typing import Optional

from config import HOST, PORT, BACKLOG, CONFIG_FILE, LOG_FILE, ACCEPT_POLL_INTERVAL
from credentials import CredentialStore
from logging_util import DiagnosticsSink, setup_logger
from session import ConnectionSession


class Server:
    def __init__(self, port=PORT, user_db_path=CONFIG_FILE, log_path=LOG_FILE,
                 host=HOST, timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.user_db_path = user_db_path
        self.log_path = log_path
        self.timeout = timeout
        self.logger = setup_logger("server")
        self.diagnostics = DiagnosticsSink(log_path)
        self.credentials = CredentialStore.load(user_db_path, self.diagnostics)
        self.server_socket = None
        self._running = threading.Event()

    @property
    def address(self):
        return self.server_socket.getsockname() if self.server_socket else None

    def bind(self) -> bool:
        server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(BACKLOG)
        except (OSError, OverflowError) as e:
            server_socket.close()
            self.diagnostics.report(f"Cannot bind to {self.host}:{self.port}: {e}", True)
            return False
        server_socket.settimeout(ACCEPT_POLL_INTERVAL)
        self.server_socket = server_socket
        self._running.set()
        self.logger.info(f"Server started on {self.host}:{self.address[1]}")
        return True

    def handle_client(self, client_socket, client_address):
        session = ConnectionSession(client_socket, client_address, self.credentials,
                                    self.diagnostics, timeout=self.timeout)
        session.run()

    def serve_forever(self):
        self.logger.info("Server ready for connections...")
        server_socket = self.server_socket
        while self._running.is_set():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running.is_set():
                    break
                self.diagnostics.report(f"Accept failed: {e}", True)
                continue
            threading.Thread(target=self.handle_client, args=(client_socket, client_address), daemon=True).start()

    def start(self) -> bool:
        if not self.bind():
            return False
        try:
            self.serve_forever()
        except KeyboardInterrupt:
            self.logger.info("Interrupted, shutting down")
        finally:
            self.shutdown()
        return True

    def shutdown(self):
        self._running.clear()
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None


def build_parser():
    parser = argparse.ArgumentParser(prog="vcalc-server", description="Vector calculation server",
                                     add_help=False)
    parser.add_argument("-h", dest="help", action="store_true", help="Show this help")
    parser.add_argument("-p", dest="port", metavar="PORT", type=int, default=PORT,
                        help=f"Port number (default: {PORT})")
    parser.add_argument("-c", dest="config_file", metavar="CONFIG_FILE", default=CONFIG_FILE,
                        help=f"User database file (default: {CONFIG_FILE})")
    parser.add_argument("-l", dest="log_file", metavar="LOG_FILE", default=LOG_FILE,
                        help=f"Log file (default: {LOG_FILE})")
    parser.add_argument("-t", dest="timeout", metavar="SECONDS", type=float, default=None,
                        help="Per-connection read timeout (default: none)")
    return parser


def parse_args(argv):
    # Unknown flags are ignored.
    args, _ = build_parser().parse_known_args(argv)
    return args


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    # -h wins over everything else on the command line.
    if not argv or "-h" in argv:
        build_parser().print_help()
        return 0
    args = parse_args(argv)

    logger = setup_logger("server")
    server = Server(port=args.port, user_db_path=args.config_file, log_path=args.log_file,
                    timeout=args.timeout)
    logger.info(f"Starting server on port {args.port}")
    logger.info(f"User database: {args.config_file}")
    logger.info(f"Log file: {args.log_file}")

    if not server.start():
        logger.error("Failed to start server")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
