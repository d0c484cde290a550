"""
odata_node.batch - Batch execution over input records
======================================================

"""

from odata_node.batch.classify import ErrorCategory, ErrorReport, classify
from odata_node.batch.executor import (
    BatchExecutor,
    NodeParameters,
    RecordResult,
    RunReport,
    run_batch,
)

__all__ = [
    "ErrorCategory",
    "ErrorReport",
    "classify",
    "BatchExecutor",
    "NodeParameters",
    "RecordResult",
    "RunReport",
    "run_batch",
]
