# Storage module
from .base import TrackStorage, parse_tracks, dump_tracks
from .file_storage import FileTrackStorage
from .kv_storage import KVTrackStorage
from .factory import create_storage
