from .api_client import ApiClient, ApiError
from .batch import BatchReport, BatchUploader, UploadResult, accept_files
from .compensation import CompensationManager
from .orchestrator import InvalidTransition, UploadOrchestrator
from .quota import Allowed, Denied, QuotaGate
from .records import RecordCreateClient, RecordDeleteClient, RecordFinalizeClient
from .transport import PresignedTransport, TransferFailed, TransferSucceeded

__all__ = [
    "ApiClient",
    "ApiError",
    "QuotaGate",
    "Allowed",
    "Denied",
    "PresignedTransport",
    "TransferSucceeded",
    "TransferFailed",
    "RecordCreateClient",
    "RecordFinalizeClient",
    "RecordDeleteClient",
    "CompensationManager",
    "UploadOrchestrator",
    "InvalidTransition",
    "BatchUploader",
    "BatchReport",
    "UploadResult",
    "accept_files",
]
