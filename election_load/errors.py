"""Run-level failures. Operation failures never raise; they become failed Results."""


class LoadTestError(Exception):
    """Base class for failures that abort a whole run."""


class StoreUnavailableError(LoadTestError):
    """The data store could not be reached before the run started."""


class ReportWriteError(LoadTestError):
    """The final report could not be persisted."""
