"""Exception types raised by the bronze loader."""


class BronzeLoaderError(Exception):
    """Base exception for all bronze loader errors."""


class ConfigError(BronzeLoaderError):
    """Raised when the environment configuration is incomplete or invalid."""


class ManifestError(BronzeLoaderError):
    """
    Raised when a manifest is malformed.

    Manifest problems are configuration errors found at startup, before
    any table is touched. Every problem found is reported at once.
    """

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class AuditWriteError(BronzeLoaderError):
    """Raised when a load log record cannot be written. Fatal to the run."""
