class ProcurementError(Exception):
    """Base class for workflow errors."""


class ValidationError(ProcurementError):
    """Order not found, wrong status, or bad input for the requested operation."""


class ConfigurationError(ProcurementError):
    """A required table or column is missing."""


class TableNotFoundError(ConfigurationError):
    def __init__(self, table: str) -> None:
        super().__init__("Table not found: {}".format(table))
        self.table = table


class ExternalServiceError(ProcurementError):
    """Email delivery failed."""


class DataIntegrityWarning(UserWarning):
    pass


__all__ = [
    "ConfigurationError",
    "DataIntegrityWarning",
    "ExternalServiceError",
    "ProcurementError",
    "TableNotFoundError",
    "ValidationError",
]
