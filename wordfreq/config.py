"""
Job configuration: defaults, JSON config file, environment overrides
"""

import os
import json
from dataclasses import dataclass, asdict, fields
from typing import Mapping, Optional

from wordfreq.errors import ConfigurationError
from wordfreq.tokenizer import DEFAULT_TOKENIZER

ENV_PREFIX = "WORDFREQ_"
TOKENIZER_CLASS_KEY = "tokenizer.class"


@dataclass
class JobConfig:
    """Settings for one token frequency job"""
    tokenizer: str = DEFAULT_TOKENIZER
    num_reduce_tasks: int = 1
    num_workers: int = 4
    use_combiner: bool = True
    split_size: int = 32 * 1024 * 1024
    flush_threshold: int = 0
    metrics_file: Optional[str] = None

    def validate(self) -> "JobConfig":
        """Check value ranges, raising ConfigurationError on the first bad one"""
        if not self.tokenizer:
            raise ConfigurationError("tokenizer must not be empty")
        if self.num_reduce_tasks < 1:
            raise ConfigurationError(f"num_reduce_tasks must be >= 1, got {self.num_reduce_tasks}")
        if self.num_workers < 1:
            raise ConfigurationError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.split_size < 1:
            raise ConfigurationError(f"split_size must be >= 1, got {self.split_size}")
        if self.flush_threshold < 0:
            raise ConfigurationError(f"flush_threshold must be >= 0, got {self.flush_threshold}")
        return self

    def to_dict(self) -> dict:
        return asdict(self)


def _coerce(name: str, value, target_type):
    """Convert a raw config value (often a string) to the field's type"""
    if value is None:
        return None
    try:
        if target_type is bool:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in ("1", "true", "yes", "on"):
                return True
            if text in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"not a boolean: {value!r}")
        if target_type is int:
            if isinstance(value, bool):
                raise ValueError(f"not an integer: {value!r}")
            return int(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for '{name}': {e}") from e


_FIELD_TYPES = {
    'tokenizer': str,
    'num_reduce_tasks': int,
    'num_workers': int,
    'use_combiner': bool,
    'split_size': int,
    'flush_threshold': int,
    'metrics_file': str,
}


def _apply(config: JobConfig, values: Mapping, source: str) -> JobConfig:
    known = {f.name for f in fields(JobConfig)}
    for key, value in values.items():
        name = 'tokenizer' if key == TOKENIZER_CLASS_KEY else key
        if name not in known:
            raise ConfigurationError(f"Unknown option '{key}' in {source}")
        setattr(config, name, _coerce(name, value, _FIELD_TYPES[name]))
    return config


def load_config_file(path: str) -> dict:
    """
    Read a JSON config file

    Raises:
        ConfigurationError: If the file is missing or not a JSON object
    """
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict:
    """Collect WORDFREQ_<OPTION> environment variables"""
    environ = os.environ if environ is None else environ
    overrides = {}
    for name in _FIELD_TYPES:
        env_name = ENV_PREFIX + name.upper()
        if env_name in environ:
            overrides[name] = environ[env_name]
    return overrides


def build_config(config_file: Optional[str] = None,
                 overrides: Optional[Mapping] = None,
                 environ: Optional[Mapping[str, str]] = None) -> JobConfig:
    """
    Build the job configuration, later sources winning:
    defaults < config file < environment < explicit overrides

    Args:
        config_file: Optional path to a JSON config file
        overrides: Values set explicitly (e.g. from command line flags);
            None values are ignored
        environ: Environment mapping, os.environ by default

    Returns:
        A validated JobConfig
    """
    config = JobConfig()
    if config_file:
        _apply(config, load_config_file(config_file), config_file)
    _apply(config, env_overrides(environ), "environment")
    if overrides:
        _apply(config, {k: v for k, v in overrides.items() if v is not None}, "arguments")
    return config.validate()
