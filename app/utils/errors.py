"""
Error taxonomy for the Directory Monitor.

Expected absences (no manifest, no excludes file, no process) are not
errors and never raise. Only rejected input and operational failures do.
"""


class DirectoryMonitorError(Exception):
    """Base error for directory monitor operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(DirectoryMonitorError):
    """The caller supplied input that cannot be acted on."""

    status_code = 400


class DirectoryNotFoundError(InvalidRequestError):
    """Target directory does not exist on the file system."""

    def __init__(self, directory: str):
        super().__init__(f"Directory does not exist: {directory}")
        self.directory = directory


class OperationalError(DirectoryMonitorError):
    """A required process could not be spawned or a file could not be read."""

    status_code = 500
