"""Package specific exception hierarchy."""


class StreamChatError(Exception):
    """Base exception for streamchat package."""


class ConfigError(StreamChatError):
    """Raised when a provider cannot be built from its configuration."""


class MissingApiKeyError(ConfigError):
    """Raised when a provider's API key is absent or empty."""

    def __init__(self, env_var: str, *, empty: bool) -> None:
        state = "is empty" if empty else "is not set"
        super().__init__(f"API key variable {env_var} {state}")
        self.env_var = env_var
        self.empty = empty


class RequestError(StreamChatError):
    """Raised when the server could not be reached or the connection broke."""


class RequestTimeout(StreamChatError):
    """Raised when no response arrived within the configured timeout."""

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"Request timeout after {timeout_s:g} seconds")
        self.timeout_s = timeout_s


class ApiError(StreamChatError):
    """Raised when the server answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ParseError(StreamChatError):
    """Raised when a response body does not have the expected shape."""


class UnsupportedProviderError(StreamChatError):
    """Raised when a provider id is not known."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Provider '{provider}' is not available.")
