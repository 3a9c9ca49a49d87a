from __future__ import annotations


class BenchmarkError(RuntimeError):
    """Base error"""


class ConfigurationError(BenchmarkError, ValueError):
    """
    Invalid workload or benchmark configuration, including node populations
    that cannot be sampled from.
    """


class StoreError(BenchmarkError):
    """Metadata store call failed"""


class NotFoundError(StoreError):
    """Requested record does not exist in the store"""


class AlreadyExistsError(StoreError):
    """Record already exists in the store"""


class ResourceExhaustedError(BenchmarkError):
    """
    Not enough never-outputted artifacts remain to satisfy the OUTPUT events
    still required by a batch.
    """


class LifecycleError(BenchmarkError):
    """Workload phase called out of order"""


class InvalidArgumentError(BenchmarkError, ValueError):
    """Bad argument to a workload operation"""
