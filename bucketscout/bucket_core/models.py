"""Bucket Core Models - Data models for discovered buckets and pipeline state"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any


# ===============================================================================
# CORE ENUMERATIONS
# ===============================================================================

class BackpressurePolicy(Enum):
    """What the probe queue does when it is full"""
    DROP_OLDEST = "drop_oldest"     # Drop the head of the queue to make room
    REJECT_NEW = "reject_new"       # Refuse the incoming hostname


class PermissionFlag(Enum):
    """Permission flags tracked per bucket"""
    LIST_BUCKET = "listBucket"
    ACL_READ = "aclRead"
    ACL_WRITE = "aclWrite"


def now_millis() -> int:
    """Current time as epoch milliseconds"""
    return int(time.time() * 1000)


# ===============================================================================
# CORE DATA MODELS
# ===============================================================================

@dataclass
class BucketPermissions:
    """Anonymous permissions observed on a bucket"""
    list_bucket: bool = False
    acl_read: bool = False
    acl_write: bool = False

    def union(self, other: 'BucketPermissions') -> 'BucketPermissions':
        """Flag-wise OR; a flag once observed is never lost"""
        return BucketPermissions(
            list_bucket=self.list_bucket or other.list_bucket,
            acl_read=self.acl_read or other.acl_read,
            acl_write=self.acl_write or other.acl_write
        )

    @property
    def has_any(self) -> bool:
        return self.list_bucket or self.acl_read or self.acl_write

    def to_dict(self) -> Dict[str, bool]:
        """Convert to the persisted camelCase shape"""
        return {
            PermissionFlag.LIST_BUCKET.value: self.list_bucket,
            PermissionFlag.ACL_READ.value: self.acl_read,
            PermissionFlag.ACL_WRITE.value: self.acl_write
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'BucketPermissions':
        """Create from the persisted camelCase shape"""
        data = data or {}
        return cls(
            list_bucket=bool(data.get(PermissionFlag.LIST_BUCKET.value, False)),
            acl_read=bool(data.get(PermissionFlag.ACL_READ.value, False)),
            acl_write=bool(data.get(PermissionFlag.ACL_WRITE.value, False))
        )


@dataclass
class BucketRecord:
    """Outcome of probing one hostname, and the persisted finding for it"""
    hostname: str
    owned: bool = False
    public: bool = False
    permissions: BucketPermissions = field(default_factory=BucketPermissions)
    date: int = field(default_factory=now_millis)  # epoch milliseconds
    region: Optional[str] = None
    owner: Optional[str] = None

    @property
    def discovered_at(self) -> datetime:
        return datetime.fromtimestamp(self.date / 1000)

    @property
    def badges(self):
        """Human readable permission labels, most severe last"""
        labels = []
        if self.permissions.list_bucket:
            labels.append("ListBucket")
        if self.permissions.acl_read:
            labels.append("ACL Read")
        if self.permissions.acl_write:
            labels.append("ACL Write")
        return labels or ["Private"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted record shape"""
        data = {
            'hostname': self.hostname,
            'public': self.public,
            'permissions': self.permissions.to_dict(),
            'date': self.date,
            'owned': self.owned
        }
        if self.region:
            data['region'] = self.region
        if self.owner:
            data['owner'] = self.owner
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BucketRecord':
        """Create from the persisted record shape"""
        return cls(
            hostname=data['hostname'],
            owned=bool(data.get('owned', False)),
            public=bool(data.get('public', False)),
            permissions=BucketPermissions.from_dict(data.get('permissions')),
            date=int(data.get('date') or now_millis()),
            region=data.get('region'),
            owner=data.get('owner')
        )


@dataclass
class ScanStats:
    """Counters kept by the scheduler for one session"""
    submitted: int = 0
    filtered: int = 0
    probed: int = 0
    owned: int = 0
    saved: int = 0
    failed: int = 0
    max_active: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'submitted': self.submitted,
            'filtered': self.filtered,
            'probed': self.probed,
            'owned': self.owned,
            'saved': self.saved,
            'failed': self.failed,
            'max_active': self.max_active
        }
