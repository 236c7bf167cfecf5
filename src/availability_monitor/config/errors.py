from __future__ import annotations

"""Configuration failures raised while resolving monitor settings."""


class ConfigurationError(RuntimeError):
    """Raised when a monitor setting is absent, unparseable or inconsistent."""

    def __init__(self, message: str, *, variable: str = "") -> None:
        super().__init__(message)
        self.variable = variable

    @classmethod
    def missing_variable(cls, variable: str, context: str = "") -> "ConfigurationError":
        message = f"{variable} is not set"
        if context:
            message += f" ({context})"
        return cls(message, variable=variable)

    @classmethod
    def unparseable(cls, variable: str, raw: str, expected: str) -> "ConfigurationError":
        """Value could not be converted; ``expected`` names the accepted shape."""
        return cls(f"{variable}={raw!r} is not {expected}", variable=variable)

    @classmethod
    def out_of_range(cls, variable: str, value, constraint: str) -> "ConfigurationError":
        return cls(f"{variable}={value!r} violates: {constraint}", variable=variable)

    @classmethod
    def unknown_timezone(cls, variable: str, name: str) -> "ConfigurationError":
        return cls(f"{variable}={name!r} is not a known IANA timezone", variable=variable)

    @classmethod
    def incomplete_telegram(cls, missing: str, present: str) -> "ConfigurationError":
        """Only one half of the bot token / chat id pair was configured."""
        return cls(f"{missing} must be set together with {present}", variable=missing)

    @classmethod
    def env_file_unreadable(cls, path: str) -> "ConfigurationError":
        return cls(f"Could not read environment file {path}")


__all__ = ["ConfigurationError"]
