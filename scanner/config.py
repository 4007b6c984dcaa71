"""Configuration loading for analysis runs."""

import json
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from loguru import logger

from .builder import DEFAULT_CONCURRENCY
from .discovery import ALL_EXTENSIONS, DEFAULT_EXTENSIONS
from .errors import ConfigError
from .resolver import AliasTable, build_alias_table


CONFIG_FILENAMES = [
    "vue-unused.config.json",
    "vue-unused.config.yaml",
    "vue-unused.config.yml",
    "vue-unused.config.toml",
]
DEFAULT_ALIAS = {"@": "src"}
DEFAULT_IGNORE = ["**/*.test.*", "**/*.spec.*", "**/__tests__/**"]
DEFAULT_ENTRY = ["src/main.js", "src/main.ts", "src/index.js", "src/App.vue"]

# Config file keys that differ from the dataclass field names.
_KEY_ALIASES = {
    "rootDir": "root_dir",
    "bundleDir": "bundle_dir",
}


@dataclass
class AnalysisConfig:
    """
    Everything one analysis run needs.

    Attributes:
        root_dir: Project root; aliases and entries are relative to it.
        alias: Specifier prefix -> directory (relative to root_dir).
        extensions: Extensions to scan and probe, or "ALL".
        ignore: Glob patterns excluded from the scan.
        entry: Files that count as used without any importer.
        bundle: Cross-check against the build output's source maps.
        bundle_dir: Build output directory; auto-detected when None.
        concurrency: Maximum number of files analyzed at once.
        delete: Delete unused files after the scan.
        verbose: Debug logging requested.
    """
    root_dir: Path = field(default_factory=Path.cwd)
    alias: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIAS))
    extensions: Union[str, List[str]] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    entry: List[str] = field(default_factory=lambda: list(DEFAULT_ENTRY))
    bundle: bool = False
    bundle_dir: Optional[Path] = None
    concurrency: int = DEFAULT_CONCURRENCY
    delete: bool = False
    verbose: bool = False

    def __post_init__(self):
        if not isinstance(self.alias, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in self.alias.items()
        ):
            raise ConfigError(f"alias must map prefixes to directories, got {self.alias!r}")
        for name in ("ignore", "entry"):
            _check_string_list(name, getattr(self, name))
        for name in ("bundle", "delete", "verbose"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false, got {getattr(self, name)!r}")
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int) or self.concurrency < 1:
            raise ConfigError(f"concurrency must be a positive integer, got {self.concurrency!r}")

        try:
            self.root_dir = Path(self.root_dir).resolve()
            if self.bundle_dir is not None:
                self.bundle_dir = (self.root_dir / self.bundle_dir).resolve()
        except TypeError as exc:
            raise ConfigError(f"Invalid path in configuration: {exc}") from exc
        if isinstance(self.extensions, str):
            if self.extensions.upper() != ALL_EXTENSIONS:
                raise ConfigError(f"extensions must be a list or '{ALL_EXTENSIONS}', got {self.extensions!r}")
            self.extensions = ALL_EXTENSIONS
        else:
            _check_string_list("extensions", self.extensions)
            self.extensions = [ext if ext.startswith(".") else "." + ext for ext in self.extensions]

    def alias_table(self) -> AliasTable:
        return build_alias_table(self.alias)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base_dir: Optional[Path] = None) -> "AnalysisConfig":
        """
        Build a config from a parsed config file.

        ``rootDir`` is relative to ``base_dir`` (the config file's directory),
        and defaults to it. Unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                logger.warning(f"Ignoring unknown config key '{key}'")
                continue
            kwargs[name] = value

        base_dir = base_dir or Path.cwd()
        try:
            kwargs["root_dir"] = base_dir / kwargs.get("root_dir", ".")
            return cls(**kwargs)
        except TypeError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def _check_string_list(name: str, value: Any) -> None:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{name} must be a list of strings, got {value!r}")


def parse_config_file(file_path: Path) -> Dict[str, Any]:
    """
    Parse a configuration file by extension.

    Args:
        file_path: A .json, .yaml/.yml or .toml file.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        ConfigError: If the file cannot be read or does not hold a mapping.
    """
    suffix = file_path.suffix.lower()
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {file_path}: {exc}") from exc

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
        elif suffix == ".json":
            data = json.loads(content)
        else:
            raise ConfigError(f"Unsupported config file type: {file_path.name}")
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file {file_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {file_path} must contain a mapping")
    return data


def find_project_root(start: Path) -> Path:
    """Return the nearest ancestor holding ``.git`` or ``package.json``, else ``start``."""
    start = start.resolve()
    for directory in [start, *start.parents]:
        if (directory / ".git").exists() or (directory / "package.json").exists():
            return directory
    return start


def find_config_file(directory: Path) -> Optional[Path]:
    for name in CONFIG_FILENAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AnalysisConfig:
    """
    Load the run configuration.

    An explicit ``config_path`` must exist. Otherwise the first default
    config file in ``cwd`` is used, and without one the defaults apply with
    the project root found from ``cwd``. ``overrides`` (e.g. CLI flags)
    win over file values.
    """
    cwd = (cwd or Path.cwd()).resolve()

    if config_path is not None:
        config_path = (cwd / config_path).resolve()
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(cwd)

    if config_path is not None:
        logger.debug(f"Loading configuration from {config_path}")
        data = parse_config_file(config_path)
        base_dir = config_path.parent
    else:
        data = {}
        base_dir = find_project_root(cwd)

    merged = dict(data)
    merged.update(overrides or {})
    return AnalysisConfig.from_mapping(merged, base_dir=base_dir)


def write_default_config(file_path: Path) -> Path:
    """Write a default YAML config, refusing to overwrite an existing file."""
    if file_path.exists():
        raise ConfigError(f"{file_path.name} already exists in this directory")

    defaults = AnalysisConfig(root_dir=file_path.parent)
    content = {
        "alias": defaults.alias,
        "extensions": defaults.extensions,
        "entry": defaults.entry,
        "ignore": defaults.ignore,
        "delete": defaults.delete,
    }
    file_path.write_text(yaml.safe_dump(content, sort_keys=False), encoding="utf-8")
    return file_path
