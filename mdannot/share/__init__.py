"""Share codes, storage and client for remotely shared documents."""

from .codes import ALPHABET, generate_code, is_valid_code, normalize_code
from .errors import ShareError, share_error_message
from .store import TTL_SECONDS, MemoryShareStore, ShareRecord
from .url_codec import decode_markdown_from_url, encode_markdown_for_url

__all__ = [
    "ALPHABET",
    "MemoryShareStore",
    "ShareError",
    "ShareRecord",
    "TTL_SECONDS",
    "decode_markdown_from_url",
    "encode_markdown_for_url",
    "generate_code",
    "is_valid_code",
    "normalize_code",
    "share_error_message",
]
