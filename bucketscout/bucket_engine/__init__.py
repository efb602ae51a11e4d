from .host_filter import HostFilter, normalize_hostname, is_loopback
from .probe_queue import ProbeQueue
from .classifiers import (
    ListBucketResult, AclResult, parse_list_bucket_xml, parse_acl_xml,
    detect_vendor, extract_region
)
from .probe_executor import BucketProbeExecutor, ProbeResponse
from .notifications import RecordNotifier
from .merger import ResultMerger, merge_records
from .scheduler import ProbeScheduler
from .session import ScoutSession
from .exporters import ExportManager, ExportFormat, ExportResult, default_export_filename

__all__ = [
    "HostFilter", "normalize_hostname", "is_loopback",
    "ProbeQueue",
    "ListBucketResult", "AclResult", "parse_list_bucket_xml", "parse_acl_xml",
    "detect_vendor", "extract_region",
    "BucketProbeExecutor", "ProbeResponse",
    "RecordNotifier", "ResultMerger", "merge_records",
    "ProbeScheduler", "ScoutSession",
    "ExportManager", "ExportFormat", "ExportResult", "default_export_filename"
]
