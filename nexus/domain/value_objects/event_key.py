from dataclasses import dataclass

WILDCARD_KEY = "*"


@dataclass(frozen=True)
class EventKey:
    """
    Value Object representing the channel an event is published on.
    Surrounding whitespace is not significant: " user:login " and
    "user:login" name the same channel.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"Event key must be a string, got {type(self.value).__name__}")
        trimmed = self.value.strip()
        if not trimmed:
            raise ValueError("Event key cannot be empty")
        object.__setattr__(self, "value", trimmed)

    @property
    def is_wildcard(self) -> bool:
        return self.value == WILDCARD_KEY

    def __str__(self):
        return self.value
