# ABOUTME: Typed failures raised by the storage layer
# ABOUTME: Route handlers translate these into HTTP status codes

class DatabaseUnavailableError(Exception):
    """No database connection could be established"""


class AlreadyExistsError(Exception):
    """A row with the same unique key already exists"""
