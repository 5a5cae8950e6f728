"""Batch job errors."""


class JobError(Exception):
    """Base class for run-level batch failures."""


class JobAlreadyRunningError(JobError):
    """Another execution of the same job is active."""


class JobInstanceAlreadyCompleteError(JobError):
    """The job already completed with the same parameters."""


class JobRestartError(JobError):
    """An earlier execution with the same parameters never finished."""


class ChunkWriteError(JobError):
    """A chunk could not be written; none of its items were committed."""
