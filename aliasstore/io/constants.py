# aliasstore/io/constants.py
from typing import Tuple

# Capabilities of the random access storage interface, in the order they are documented.
# "del" is exposed as "delete" since the former is a Python keyword.
STORAGE_CAPABILITIES: Tuple[str, ...] = ("write", "read", "stat", "delete", "close", "destroy", "on")


ERROR_EVENT = "error"

DEFAULT_CACHE_SIZE = 128
DEFAULT_BACKEND = "file"
