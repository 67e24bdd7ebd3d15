"""Exceptions raised by the extraction components."""


class ExtractorNotRegisteredError(KeyError):
    """Raised when an extractor is requested by a name nobody registered."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = sorted(available or [])
        super().__init__(name)

    def __str__(self) -> str:
        return f"No extractor registered under '{self.name}'. Available: {self.available}"
