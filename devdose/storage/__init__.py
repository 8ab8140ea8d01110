from devdose.storage.checkpoint_store import STAGE_RESULT_TYPES, CheckpointError, CheckpointStore
from devdose.storage.connection import close_all_connections, close_connection, get_connection
from devdose.storage.models import PostRow
from devdose.storage.post_store import PostFilter, PostStore
from devdose.storage.schema import initialize_database

__all__ = [
    "STAGE_RESULT_TYPES",
    "CheckpointError",
    "CheckpointStore",
    "PostFilter",
    "PostRow",
    "PostStore",
    "close_all_connections",
    "close_connection",
    "get_connection",
    "initialize_database",
]
