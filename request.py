"""Request-line model and parser."""

from dataclasses import dataclass

SUPPORTED_METHOD = "GET"


@dataclass(frozen=True, slots=True)
class HTTPRequest:
    method: str
    path: str

    @property
    def is_get(self) -> bool:
        return self.method.upper() == SUPPORTED_METHOD

    @classmethod
    def from_request_line(cls, line: str) -> "HTTPRequest | None":
        """Split ``METHOD SP PATH [...]`` into a request, or None when incomplete.

        Tokens are separated by single spaces, so doubled spaces yield empty
        tokens. Trailing empty tokens are discarded before counting.
        """
        tokens = line.rstrip("\r\n").split(" ")
        while tokens and not tokens[-1]:
            tokens.pop()
        if len(tokens) < 2:
            return None
        return cls(method=tokens[0], path=tokens[1])
