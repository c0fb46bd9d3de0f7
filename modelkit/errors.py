class ConfigurationError(ValueError):
    """Raised at build time when a builder option is invalid."""

    def __init__(self, option: str, message: str):
        self.option = option
        self.reason = message
        super().__init__(f"{option}: {message}")


class ShapeError(ValueError):
    """Raised at call time when an input does not match what a layer expects."""
