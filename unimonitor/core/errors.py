class InvalidInput(ValueError):
    """Raised when evaluator input or a loaded record is out of range."""


class MissingRecord(LookupError):
    """Raised by the record provider when a student profile does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")
