"""
BucketScout Custom Exceptions
Standardized exception hierarchy for better error handling
"""

class BucketScoutError(Exception):
    """Base exception for all BucketScout errors"""
    pass


class ConfigurationError(BucketScoutError):
    """Configuration-related errors"""
    pass


class StoreError(BucketScoutError):
    """Persistence operation errors"""
    pass


class QueueFullError(BucketScoutError):
    """Raised when the probe queue refuses a hostname under backpressure"""

    def __init__(self, message: str, hostname: str = None, max_size: int = 0):
        super().__init__(message)
        self.hostname = hostname
        self.max_size = max_size
