from __future__ import annotations


class SourceError(Exception):
    """A source adapter could not produce live events."""

    def __init__(self, source: str, code: str, detail: str | None = None) -> None:
        self.source = source
        self.code = code
        self.detail = detail
        super().__init__(f"{source}: {code}" + (f" ({detail})" if detail else ""))

    @property
    def message(self) -> str:
        return self.code if not self.detail else f"{self.code}: {self.detail}"


class SourceUnavailable(SourceError):
    """Timeout, connection failure or non-200 response."""


class MalformedPayload(SourceError):
    """Response body could not be parsed or did not match the expected schema."""


class MissingCredentials(SourceError):
    """The adapter needs an API key that is not configured; no request was made."""

    def __init__(self, source: str, setting: str) -> None:
        super().__init__(source, f"missing_credentials:{setting}")
        self.setting = setting
