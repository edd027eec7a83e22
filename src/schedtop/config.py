"""Configuration system for schedtop."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

from schedtop.filtering import SortKey
from schedtop.provider import DEFAULT_PROC_ROOT, DEFAULT_QUANTUM_PATH
from schedtop.session import DEFAULT_TICK_RATE, MIN_TICK_RATE

LOG_LEVELS = ("debug", "info", "warning", "error")


class ConfigError(ValueError):
    """The configuration file is unreadable or holds invalid values."""


@dataclass
class SessionConfig:
    """Interactive session configuration."""

    tick_rate: float = DEFAULT_TICK_RATE  # Seconds between table refreshes
    initial_filter: str = ""
    sort: str = SortKey.RUN_TIME.value

    @property
    def sort_key(self) -> SortKey:
        return SortKey(self.sort)


@dataclass
class SystemConfig:
    """Where kernel data is read from."""

    quantum_path: str = str(DEFAULT_QUANTUM_PATH)
    proc_root: str = str(DEFAULT_PROC_ROOT)


@dataclass
class LoggingConfig:
    """Log file configuration."""

    level: str = "info"
    max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    backup_count: int = 3  # Number of rotated log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


def _load_section(cls, name: str, data: Mapping):
    """Build a section dataclass from TOML data, using defaults for missing keys."""
    if not isinstance(data, Mapping):
        raise ConfigError(f"[{name}] must be a table, got {data!r}")
    defaults = cls()
    values = {}
    for f in fields(cls):
        value = data.get(f.name, getattr(defaults, f.name))
        if isinstance(value, tomlkit.items.Item):
            value = value.unwrap()
        values[f.name] = value
    return cls(**values)


@dataclass
class Config:
    """Main configuration container."""

    session: SessionConfig = field(default_factory=SessionConfig)
    system: SystemConfig = field(default_factory=SystemConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "schedtop"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory holding the log file."""
        return Path.home() / ".local" / "state" / "schedtop"

    @property
    def log_path(self) -> Path:
        """Path to the JSON Lines log file."""
        return self.state_dir / "schedtop.log"

    def validate(self) -> None:
        """
        Check value types and ranges.

        Raises:
            ConfigError: If a value has the wrong type or is out of range.
        """
        expected = [
            ("session.tick_rate", self.session.tick_rate, (int, float)),
            ("session.initial_filter", self.session.initial_filter, str),
            ("session.sort", self.session.sort, str),
            ("system.quantum_path", self.system.quantum_path, str),
            ("system.proc_root", self.system.proc_root, str),
            ("logging.level", self.logging.level, str),
            ("logging.max_bytes", self.logging.max_bytes, int),
            ("logging.backup_count", self.logging.backup_count, int),
        ]
        for name, value, types in expected:
            # bool is an int subclass but never a valid setting here
            if isinstance(value, bool) or not isinstance(value, types):
                raise ConfigError(f"{name} has the wrong type: {value!r}")

        if self.session.tick_rate < MIN_TICK_RATE:
            raise ConfigError(
                f"session.tick_rate must be at least {MIN_TICK_RATE}s, got {self.session.tick_rate}"
            )
        valid_sorts = [key.value for key in SortKey]
        if self.session.sort not in valid_sorts:
            raise ConfigError(
                f"Invalid session.sort: {self.session.sort!r}. Must be one of {valid_sorts}"
            )
        if self.logging.level not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid logging.level: {self.logging.level!r}. Must be one of {list(LOG_LEVELS)}"
            )
        if self.logging.max_bytes < 0 or self.logging.backup_count < 0:
            raise ConfigError("logging.max_bytes and logging.backup_count must not be negative")

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("session", "system", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc), encoding="utf-8")

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ConfigError: If the file cannot be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path, encoding="utf-8") as f:
                data = tomlkit.load(f)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except tomlkit.exceptions.TOMLKitError as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e

        config = cls(
            session=_load_section(SessionConfig, "session", data.get("session", {})),
            system=_load_section(SystemConfig, "system", data.get("system", {})),
            logging=_load_section(LoggingConfig, "logging", data.get("logging", {})),
        )
        config.validate()
        return config
