"""
BucketScout Configuration Constants
Centralized constants shared by the probing pipeline, config and CLI
"""

# Scheduler defaults
DEFAULT_CONCURRENCY_LIMIT = 4
DEFAULT_LIVENESS_INTERVAL = 60.0  # seconds between liveness ticks

# Probe defaults
DEFAULT_PROBE_TIMEOUT_MS = 5000
DEFAULT_MAX_BODY_BYTES = 1024 * 1024  # 1 MiB
DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"

# Queue defaults (0 = unbounded)
DEFAULT_QUEUE_MAX_SIZE = 0
DEFAULT_BACKPRESSURE_POLICY = "reject_new"

# Host filter defaults
LOOPBACK_HOSTNAMES = {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}
DEFAULT_DENY_SUFFIXES = [".mozilla.org", ".firefox.com"]
DEFAULT_DENY_SUBSTRINGS = ["google", "facebook", "microsoft"]

# Storage vendor fingerprints
DEFAULT_VENDOR_SIGNATURES = ["AmazonS3", "MinIO"]
SERVER_HEADER = "Server"
REGION_HEADER = "x-amz-bucket-region"

# S3 REST schema
LIST_BUCKET_ROOT = "ListBucketResult"
ACL_ROOT = "AccessControlPolicy"
ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
READ_PERMISSIONS = {"READ", "FULL_CONTROL"}
WRITE_PERMISSIONS = {"WRITE", "FULL_CONTROL"}

# Database settings
DEFAULT_DATABASE_URL = "sqlite:///buckets.db"
RECORDING_SETTING_KEY = "recording"

# Export settings
DEFAULT_JSON_INDENT = 2
EXPORT_FILENAME_PREFIX = "s3-buckets"

# Logging configuration
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_LEVEL = 'INFO'
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Third-party loggers to suppress
NOISY_LOGGERS = [
    'aiohttp.access',
    'aiohttp.client',
    'sqlalchemy.engine',
    'sqlalchemy.engine.base.Engine',
    'urllib3.connectionpool',
]
