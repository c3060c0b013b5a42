"""
Shared utilities so the server and client hash secrets the same way.
"""
import hashlib
from typing import Union


def md5_digest(data: Union[str, bytes]) -> str:
    """MD5 of ``data`` as 32 uppercase hex characters."""
    if isinstance(data, str):
        data = data.encode()
    return hashlib.md5(data).hexdigest().upper()
