from .models import (
    BucketRecord, BucketPermissions, BackpressurePolicy, PermissionFlag,
    ScanStats, now_millis
)
from .exceptions import BucketScoutError, ConfigurationError, StoreError, QueueFullError
from .config import ScoutConfig, ConfigManager
from .database import BucketStore

__all__ = [
    "BucketRecord", "BucketPermissions", "BackpressurePolicy", "PermissionFlag",
    "ScanStats", "now_millis",
    "BucketScoutError", "ConfigurationError", "StoreError", "QueueFullError",
    "ScoutConfig", "ConfigManager", "BucketStore"
]
