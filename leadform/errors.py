"""Error taxonomy shared by the app, the gateway and the reports."""


class LeadformError(Exception):
    """Base class for all leadform errors."""


class ConfigurationError(LeadformError):
    """Required configuration is missing. Raised at startup only."""


class ValidationError(LeadformError):
    """A submission is missing required fields."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__("Missing required fields: " + ", ".join(self.missing))


class PersistenceError(LeadformError):
    """The store is unreachable or rejected a read/write."""
