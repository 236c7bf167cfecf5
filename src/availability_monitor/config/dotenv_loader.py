"""Loading of ``.env`` style defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable

from .errors import ConfigurationError


class DotenvLoader:
    """Reads ``KEY=value`` pairs from dotenv files."""

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, str]:
        """
        Load key-value pairs from a .env file.

        Args:
            path: Path to .env file

        Returns:
            Dictionary of values, empty when the file does not exist

        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if not path.exists():
            return {}

        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigurationError.env_file_unreadable(str(path)) from exc

        values: Dict[str, str] = {}
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            if stripped.startswith("export "):
                stripped = stripped[len("export ") :]
            key, raw_value = stripped.split("=", 1)
            key = key.strip()
            if key:
                values[key] = raw_value.strip().strip("'").strip('"')
        return values

    @classmethod
    def load_first_wins(cls, paths: Iterable[Path]) -> Dict[str, str]:
        """Merge several files; earlier files take precedence."""
        merged: Dict[str, str] = {}
        for path in paths:
            for key, value in cls.load_from_file(path).items():
                merged.setdefault(key, value)
        return merged


__all__ = ["DotenvLoader"]
