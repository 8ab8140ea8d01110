from devdose.utils.hashing import code_hash, normalize_code, snippet_hash
from devdose.utils.retry import RetryPolicy

__all__ = [
    "RetryPolicy",
    "code_hash",
    "normalize_code",
    "snippet_hash",
]
