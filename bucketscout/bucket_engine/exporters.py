"""Bucket Engine Exporters - Snapshot export to JSON, CSV and YAML"""

import csv
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Any, Union

import yaml

from ..bucket_core.constants import DEFAULT_JSON_INDENT, EXPORT_FILENAME_PREFIX
from ..bucket_core.models import BucketRecord, now_millis


# ===============================================================================
# EXPORT CONFIGURATION CLASSES
# ===============================================================================

class ExportFormat(Enum):
    """Supported export formats"""
    JSON = "json"
    CSV = "csv"
    YAML = "yaml"


CSV_FIELDS = [
    "hostname", "owned", "public", "listBucket", "aclRead", "aclWrite",
    "date", "discovered_at", "region", "owner"
]


@dataclass
class ExportResult:
    """Result of export operation"""
    format_type: ExportFormat
    file_path: str
    record_count: int
    file_size_bytes: int = 0
    export_duration: float = 0.0
    success: bool = False
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


def default_export_filename(fmt: Union[ExportFormat, str] = ExportFormat.JSON) -> str:
    """``s3-buckets-<epoch millis>.<ext>``"""
    extension = fmt.value if isinstance(fmt, ExportFormat) else str(fmt).lower()
    return f"{EXPORT_FILENAME_PREFIX}-{now_millis()}.{extension}"


def _as_mapping(records: Union[Mapping[str, BucketRecord], List[BucketRecord]]) -> Dict[str, BucketRecord]:
    if isinstance(records, Mapping):
        return dict(records)
    return {record.hostname: record for record in records}


# ===============================================================================
# EXPORTERS
# ===============================================================================

class BaseExporter(ABC):
    """Abstract base class for all exporters"""

    format_type: ExportFormat = ExportFormat.JSON

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def export(self, records: Dict[str, BucketRecord], file_path: str) -> ExportResult:
        start_time = time.time()
        result = ExportResult(
            format_type=self.format_type,
            file_path=file_path,
            record_count=len(records)
        )

        try:
            self._write(records, file_path)
            result.file_size_bytes = Path(file_path).stat().st_size
            result.success = True
        except (OSError, ValueError, yaml.YAMLError) as e:
            result.error_message = str(e)
            self.logger.error(f"{self.format_type.value.upper()} export failed: {e}")
        finally:
            result.export_duration = time.time() - start_time

        return result

    @abstractmethod
    def _write(self, records: Dict[str, BucketRecord], file_path: str) -> None:
        pass


class JSONExporter(BaseExporter):
    """Hostname-keyed persistence shape, the same document the store holds"""

    format_type = ExportFormat.JSON

    def _write(self, records, file_path):
        data = {hostname: record.to_dict() for hostname, record in records.items()}
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=DEFAULT_JSON_INDENT, ensure_ascii=False)


class CSVExporter(BaseExporter):
    """One flat row per bucket"""

    format_type = ExportFormat.CSV

    def _write(self, records, file_path):
        with open(file_path, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for record in records.values():
                writer.writerow(self._flatten(record))

    @staticmethod
    def _flatten(record: BucketRecord) -> Dict[str, Any]:
        row = {
            'hostname': record.hostname,
            'owned': record.owned,
            'public': record.public,
            'date': record.date,
            'discovered_at': record.discovered_at.isoformat(timespec='seconds'),
            'region': record.region or '',
            'owner': record.owner or ''
        }
        row.update(record.permissions.to_dict())
        return row


class YAMLExporter(BaseExporter):
    """YAML rendering of the JSON document"""

    format_type = ExportFormat.YAML

    def _write(self, records, file_path):
        data = {hostname: record.to_dict() for hostname, record in records.items()}
        with open(file_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True,
                           indent=2, sort_keys=False)


# ===============================================================================
# MAIN EXPORT MANAGER
# ===============================================================================

class ExportManager:
    """Picks the exporter for a format and runs it"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.exporters = {
            ExportFormat.JSON: JSONExporter(),
            ExportFormat.CSV: CSVExporter(),
            ExportFormat.YAML: YAMLExporter()
        }

    def export(self, records: Union[Mapping[str, BucketRecord], List[BucketRecord]],
               file_path: Optional[str] = None,
               format_type: Optional[Union[ExportFormat, str]] = None) -> ExportResult:
        """Export a snapshot; the format falls back to the file extension, then JSON"""
        if format_type is None:
            format_type = self._detect_format_from_path(file_path) if file_path else ExportFormat.JSON

        if isinstance(format_type, str):
            try:
                format_type = ExportFormat(format_type.lower())
            except ValueError:
                return ExportResult(
                    format_type=ExportFormat.JSON,
                    file_path=file_path or '',
                    record_count=0,
                    error_message=f"Unsupported format: {format_type}"
                )

        file_path = file_path or default_export_filename(format_type)
        records = _as_mapping(records)

        self.logger.info(f"Exporting {len(records)} buckets to {format_type.value} format")
        result = self.exporters[format_type].export(records, file_path)

        if result.success:
            self.logger.info(f"Export completed: {file_path} ({result.file_size_bytes} bytes)")
        return result

    def _detect_format_from_path(self, file_path: str) -> ExportFormat:
        """Detect export format from file extension"""
        format_map = {
            '.json': ExportFormat.JSON,
            '.csv': ExportFormat.CSV,
            '.yaml': ExportFormat.YAML,
            '.yml': ExportFormat.YAML
        }
        return format_map.get(Path(file_path).suffix.lower(), ExportFormat.JSON)

    def get_supported_formats(self) -> List[str]:
        return [fmt.value for fmt in ExportFormat]
