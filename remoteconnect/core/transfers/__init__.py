from core.transfers.transfer_models import TransferDirection, TransferOutcome, TransferStatus, TransferTask
from core.transfers.transfer_queue import TransferQueue

__all__ = [
    "TransferDirection",
    "TransferOutcome",
    "TransferStatus",
    "TransferTask",
    "TransferQueue",
]
