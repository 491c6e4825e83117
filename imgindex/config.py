# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Configuration loading

The configuration is a YAML file (``imgindex.yml``) searched in the current
directory, the home directory and /etc/imgindex/, unless a path is given
explicitly. Scalar keys can be overridden with IMGINDEX_<KEY> environment
variables. Example:

    verbose: false
    recursive: true
    workers: 4
    output: index.json
    fields:
      - name: filename
        type: core
        id: filename
      - name: orientation
        type: exif
        id: Orientation
        format: text

Copyright 2025 DNAi inc.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import yaml

from imgindex.exceptions import ConfigError
from imgindex.log import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = "imgindex.yml"
ENV_PREFIX = "IMGINDEX_"

FIELD_TYPES = ('core', 'exif', 'iptc', 'sof0', 'xmp', 'composite')
FIELD_FORMATS = ('raw', 'text')
CORE_FIELD_IDS = ('filename', 'filenameRelative', 'version', 'size')
COMPOSITE_FIELD_IDS = ('gpsLatitude', 'gpsLongitude', 'gpsAltitude')


@dataclass(frozen=True)
class FieldSpec:
    """One output field: ``name`` in the index, read from ``type``/``id``."""
    name: str
    type: str
    id: Union[str, int]
    format: str = 'raw'

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FieldSpec':
        """
        Raises:
            ConfigError: If a key is missing or a value is not supported
        """
        if not isinstance(data, Mapping):
            raise ConfigError(f"Field definition must be a mapping, got {data!r}")
        missing = [key for key in ('type', 'id') if data.get(key) in (None, '')]
        if missing:
            raise ConfigError(f"Field definition {dict(data)!r} is missing {', '.join(missing)}")

        field_type = str(data['type']).lower()
        if field_type not in FIELD_TYPES:
            raise ConfigError(f"Unknown field type {data['type']!r} (expected one of {', '.join(FIELD_TYPES)})")
        field_format = str(data.get('format', 'raw')).lower()
        if field_format not in FIELD_FORMATS:
            raise ConfigError(f"Unknown field format {data['format']!r} (expected raw or text)")

        field_id = data['id']
        if field_type == 'core' and field_id not in CORE_FIELD_IDS:
            raise ConfigError(f"Unknown core field id {field_id!r}")
        if field_type == 'composite' and field_id not in COMPOSITE_FIELD_IDS:
            raise ConfigError(f"Unknown composite field id {field_id!r}")

        return cls(
            name=str(data.get('name') or field_id),
            type=field_type,
            id=field_id,
            format=field_format,
        )


DEFAULT_FIELDS = (
    FieldSpec('filename', 'core', 'filename'),
    FieldSpec('filenameRel', 'core', 'filenameRelative'),
    FieldSpec('version', 'core', 'version'),
    FieldSpec('width', 'sof0', 'ImageWidth'),
    FieldSpec('height', 'sof0', 'ImageHeight'),
    FieldSpec('title', 'iptc', 'Caption'),
    FieldSpec('keywords', 'iptc', 'Keywords'),
    FieldSpec('description', 'exif', 'ImageDescription'),
    FieldSpec('dateTimeOriginal', 'exif', 'DateTimeOriginal'),
)


@dataclass
class IndexConfig:
    verbose: bool = False
    silent: bool = False
    recursive: bool = True
    include_hidden: bool = False
    extensions: List[str] = field(default_factory=lambda: ['.jpg', '.jpeg'])
    workers: int = 1
    output: Optional[str] = None
    fields: List[FieldSpec] = field(default_factory=lambda: list(DEFAULT_FIELDS))
    source: Optional[Path] = None

    def validate(self) -> 'IndexConfig':
        """
        Raises:
            ConfigError: If verbose and silent are both set or a value is out of range
        """
        if self.verbose and self.silent:
            raise ConfigError("verbose and silent cannot be enabled together")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if not self.fields:
            raise ConfigError("At least one field must be configured")
        self.extensions = [_normalize_extension(ext) for ext in self.extensions]
        return self


def _normalize_extension(ext: str) -> str:
    ext = str(ext).strip().lower()
    return ext if ext.startswith('.') else f'.{ext}'


def _to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('1', 'true', 'yes', 'on'):
        return True
    if text in ('0', 'false', 'no', 'off', ''):
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _to_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None


def find_config_file(search_paths: Optional[Sequence[Path]] = None) -> Optional[Path]:
    """First ``imgindex.yml`` found in the current directory, home, /etc/imgindex/."""
    if search_paths is None:
        search_paths = [Path.cwd(), Path.home(), Path('/etc/imgindex')]
    for directory in search_paths:
        candidate = Path(directory) / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Parse one YAML configuration file.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    search_paths: Optional[Sequence[Path]] = None,
) -> IndexConfig:
    """
    Build the effective configuration.

    Precedence, lowest first: defaults, config file, IMGINDEX_* environment
    variables, ``overrides`` (command-line options; None values are ignored).

    Args:
        path: Explicit config file; when None the search paths are tried
        env: Environment mapping (defaults to os.environ)
        overrides: Values taken from the command line
        search_paths: Directories searched for imgindex.yml

    Returns:
        Validated IndexConfig

    Raises:
        ConfigError: If the configuration is invalid
    """
    env = os.environ if env is None else env

    source = Path(path) if path is not None else find_config_file(search_paths)
    data = read_config_file(source) if source is not None else {}
    if source is not None:
        logger.info("Using config file %s", source)

    known = {'verbose', 'silent', 'recursive', 'include_hidden', 'extensions', 'workers', 'output', 'fields'}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ', '.join(unknown))

    for key in ('verbose', 'silent', 'recursive', 'include_hidden', 'workers', 'output', 'extensions'):
        env_value = env.get(f"{ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            data[key] = env_value.split(',') if key == 'extensions' else env_value

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    config = IndexConfig(source=source)
    for key in ('verbose', 'silent', 'recursive', 'include_hidden'):
        if key in data:
            setattr(config, key, _to_bool(key, data[key]))
    if 'workers' in data:
        config.workers = _to_int('workers', data['workers'])
    if data.get('output') not in (None, ''):
        config.output = str(data['output'])
    if 'extensions' in data:
        extensions = data['extensions']
        if isinstance(extensions, str):
            extensions = extensions.split(',')
        config.extensions = [ext for ext in extensions if str(ext).strip()]
    if 'fields' in data:
        if not isinstance(data['fields'], list):
            raise ConfigError("fields must be a list of field definitions")
        config.fields = [FieldSpec.from_dict(item) for item in data['fields']]

    return config.validate()
