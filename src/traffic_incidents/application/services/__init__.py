"""Application services."""

from .feed_records import FeedCandidate, representative_point
from .query_service import QueryService
from .user_report_service import ANONYMOUS_REPORTER, UserReportService
from .vendor_sync_job import VendorSyncJob

__all__ = [
    "ANONYMOUS_REPORTER",
    "FeedCandidate",
    "QueryService",
    "UserReportService",
    "VendorSyncJob",
    "representative_point",
]
