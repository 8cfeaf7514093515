"""Central configuration helper for the coaching AI bridge."""

import logging
import os


class HelperConfig:
    """Reads every setting from environment variables and hands out the app logger.

    Keys are case-insensitive. An empty variable counts as unset. Getters
    without a default raise ValueError for unset keys, so missing required
    configuration fails at construction time rather than on first use.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read(self, key: str) -> str | None:
        raw = os.getenv(key.upper())
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    @staticmethod
    def _missing(key: str) -> ValueError:
        return ValueError(f"Environment variable '{key.upper()}' is not set.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string setting.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        raw = self._read(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        return raw

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric setting. Values containing a dot are floats, everything else ints.

        Raises:
            ValueError: If the variable is unset without default, or not a number.
        """
        raw = self._read(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_int_val(self, key: str, default: int | None = None, minimum: int | None = None) -> int:
        """Read an integer setting such as a limit or a pool size.

        Args:
            key (str): Environment variable name.
            default (int | None): Fallback if unset.
            minimum (int | None): Smallest accepted value.

        Raises:
            ValueError: If unset without default, not an integer, or below minimum.
        """
        value = self.get_number_val(key, default=default)
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"Environment variable '{key.upper()}' must be an integer, got {value}.")
        value = int(value)
        if minimum is not None and value < minimum:
            raise ValueError(f"Environment variable '{key.upper()}' must be at least {minimum}, got {value}.")
        return value

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean setting. "true", "1" and "yes" are true, anything else false."""
        raw = self._read(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_list_val(self, key: str, default: list[str] | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a bracketed list setting, e.g. "[read,write]".

        Raises:
            ValueError: If unset without default, not bracketed, or an element cannot be cast.
        """
        raw = self._read(key)
        if raw is None:
            if default is None:
                raise self._missing(key)
            return default
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ValueError(f"Environment variable '{key.upper()}' must look like '[a{separator}b]', got '{raw}'.")
        elements = [part.strip() for part in raw[1:-1].split(separator) if part.strip()]
        try:
            return [element_type(element) for element in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key.upper()}' has an element that is not {element_type.__name__}: {e}")

    def get_logger(self) -> logging.Logger:
        return self._logger
