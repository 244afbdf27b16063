class PhytodivError(Exception):
    """Base class for pipeline errors."""


class SchemaError(PhytodivError, ValueError):
    """Required input columns are missing."""

    def __init__(self, missing, where="input table"):
        self.missing = sorted(missing)
        super().__init__(
            f"Missing required columns in {where}: {', '.join(self.missing)}"
        )


class ConfigError(PhytodivError, ValueError):
    pass


class GridMismatchError(PhytodivError, RuntimeError):
    """A diversity value does not map to exactly one cell of the dense grid."""
