class EscapeError(Exception):
    """Base class for escaping errors."""

    pass


class UnknownContextError(EscapeError, ValueError):
    """Raised when an output context name is not one of the known contexts."""

    def __init__(self, name: object) -> None:
        self.name = name
        super().__init__(f"Unknown escaping context: {name!r}")
