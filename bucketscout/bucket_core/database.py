"""Bucket Core Database - Persistent bucket findings keyed by hostname"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, List, Optional, Any

from sqlalchemy import (
    create_engine, Column, String, Boolean, BigInteger, Text, Index
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool, QueuePool
from sqlalchemy.exc import SQLAlchemyError

from .config import ScoutConfig
from .exceptions import StoreError
from .models import BucketRecord, BucketPermissions


# ===============================================================================
# DATABASE TABLE DEFINITIONS
# ===============================================================================

Base = declarative_base()


class BucketTable(Base):
    """SQLAlchemy table definition for discovered buckets"""
    __tablename__ = 'buckets'

    hostname = Column(String(255), primary_key=True)

    # Classification
    owned = Column(Boolean, nullable=False, default=False)
    public = Column(Boolean, nullable=False, default=False, index=True)

    # Anonymous permissions
    list_bucket = Column(Boolean, nullable=False, default=False)
    acl_read = Column(Boolean, nullable=False, default=False)
    acl_write = Column(Boolean, nullable=False, default=False)

    # Metadata
    date = Column(BigInteger, nullable=False, index=True)  # epoch millis
    region = Column(String(64), nullable=True)
    owner = Column(String(255), nullable=True)

    __table_args__ = (
        Index('idx_public_date', 'public', 'date'),
    )


class SettingTable(Base):
    """Small key/value table for persisted toggles"""
    __tablename__ = 'settings'

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=True)


# ===============================================================================
# BUCKET STORE
# ===============================================================================

class BucketStore:
    """Durable hostname -> BucketRecord mapping backed by SQLAlchemy"""

    def __init__(self, config: Optional[ScoutConfig] = None, database_url: Optional[str] = None):
        self.config = config or ScoutConfig()
        self.database_url = database_url or self.config.database_url
        self.engine = None
        self.session_factory = None
        self._lock = threading.Lock()

        self.logger = logging.getLogger(__name__)
        self._initialize_database()

    def _initialize_database(self):
        """Create the engine and tables"""
        try:
            self.engine = create_engine(self.database_url, **self._get_engine_config(self.database_url))
            self.session_factory = sessionmaker(bind=self.engine)
            Base.metadata.create_all(self.engine)

            if self.logger.isEnabledFor(logging.INFO):
                self.logger.info(f"Initialized bucket store: {self.database_url.split('://')[0]}")

        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize bucket store: {e}")

    def _get_engine_config(self, db_url: str) -> Dict[str, Any]:
        """Get engine configuration based on database type"""
        config = {}

        if db_url.startswith('sqlite:'):
            config.update({
                'poolclass': StaticPool,
                'connect_args': {'check_same_thread': False},
                'echo': False
            })

        elif db_url.startswith(('postgresql:', 'postgres:', 'mysql:')):
            config.update({
                'poolclass': QueuePool,
                'pool_size': 5,
                'max_overflow': 10,
                'echo': False
            })

        return config

    @contextmanager
    def get_session(self):
        """Get database session, committing on success"""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Buckets ---

    def get_bucket(self, hostname: str) -> Optional[BucketRecord]:
        """Get the stored record for a hostname"""
        try:
            with self.get_session() as session:
                row = session.get(BucketTable, hostname)
                return self._row_to_record(row) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read bucket {hostname}: {e}")

    def save_bucket(self, record: BucketRecord) -> None:
        """Insert or replace the record keyed by its hostname"""
        try:
            with self._lock, self.get_session() as session:
                row = session.get(BucketTable, record.hostname)
                if row is None:
                    row = BucketTable(hostname=record.hostname)
                    session.add(row)
                self._apply_record(row, record)

            self.logger.debug(f"Saved bucket {record.hostname}")

        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save bucket {record.hostname}: {e}")

    def get_buckets(self) -> Dict[str, BucketRecord]:
        """Full snapshot, newest first"""
        try:
            with self.get_session() as session:
                rows = session.query(BucketTable).order_by(BucketTable.date.desc()).all()
                return {row.hostname: self._row_to_record(row) for row in rows}
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read buckets: {e}")

    def hostnames(self) -> List[str]:
        """All stored hostnames"""
        try:
            with self.get_session() as session:
                return [hostname for (hostname,) in session.query(BucketTable.hostname).all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list hostnames: {e}")

    def delete_bucket(self, hostname: str) -> bool:
        """Delete a record; returns True if one existed"""
        try:
            with self._lock, self.get_session() as session:
                deleted = session.query(BucketTable).filter_by(hostname=hostname).delete()
                return deleted > 0
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete bucket {hostname}: {e}")

    def clear_buckets(self) -> int:
        """Delete every record; returns how many were removed"""
        try:
            with self._lock, self.get_session() as session:
                return session.query(BucketTable).delete()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to clear buckets: {e}")

    # --- Settings ---

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        try:
            with self.get_session() as session:
                row = session.get(SettingTable, key)
                return row.value if row else default
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read setting {key}: {e}")

    def set_setting(self, key: str, value: Optional[str]) -> None:
        try:
            with self._lock, self.get_session() as session:
                row = session.get(SettingTable, key)
                if row is None:
                    session.add(SettingTable(key=key, value=value))
                else:
                    row.value = value
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write setting {key}: {e}")

    def get_statistics(self) -> Dict[str, Any]:
        """Get store statistics"""
        try:
            with self.get_session() as session:
                query = session.query(BucketTable)
                return {
                    'total_buckets': query.count(),
                    'public_buckets': query.filter(BucketTable.public.is_(True)).count(),
                    'listable_buckets': query.filter(BucketTable.list_bucket.is_(True)).count(),
                    'acl_readable_buckets': query.filter(BucketTable.acl_read.is_(True)).count(),
                    'acl_writable_buckets': query.filter(BucketTable.acl_write.is_(True)).count()
                }
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to get statistics: {e}")

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()

    # --- Conversion ---

    @staticmethod
    def _apply_record(row: BucketTable, record: BucketRecord) -> None:
        row.owned = record.owned
        row.public = record.public
        row.list_bucket = record.permissions.list_bucket
        row.acl_read = record.permissions.acl_read
        row.acl_write = record.permissions.acl_write
        row.date = record.date
        row.region = record.region
        row.owner = record.owner

    @staticmethod
    def _row_to_record(row: BucketTable) -> BucketRecord:
        return BucketRecord(
            hostname=row.hostname,
            owned=bool(row.owned),
            public=bool(row.public),
            permissions=BucketPermissions(
                list_bucket=bool(row.list_bucket),
                acl_read=bool(row.acl_read),
                acl_write=bool(row.acl_write)
            ),
            date=int(row.date),
            region=row.region,
            owner=row.owner
        )

    def __repr__(self) -> str:
        return f"BucketStore(database_url='{self.database_url}')"
