#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management for the inbox sorter.
Loads YAML config and credentials with environment variable support,
then freezes everything into a SorterSettings value at startup.
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigurationError


DEFAULT_MODEL = "gpt-4-turbo"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


@dataclass(frozen=True)
class SorterSettings:
    """Immutable settings handed to the engine once at startup"""
    api_key: str
    root: Path
    inbox: Path
    allow_folder_creation: bool = False
    batch_size: int = 50
    interval: float = 60.0
    file_pattern: str = "*"
    audio_only: bool = False
    skip_hidden: bool = True
    lenient_parsing: bool = False
    normalize_after_move: bool = False
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 120.0

    @property
    def inbox_is_root(self) -> bool:
        return self.inbox == self.root

    def __repr__(self) -> str:
        # Keep the key out of logs and tracebacks
        return (
            f"SorterSettings(root={self.root}, inbox={self.inbox}, "
            f"allow_folder_creation={self.allow_folder_creation}, "
            f"batch_size={self.batch_size}, interval={self.interval}, model={self.model})"
        )


def parse_bool(value: Any, setting: str) -> bool:
    """Interpret a YAML or environment value as a boolean"""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{setting} must be a boolean, got {value!r}")


class ConfigManager:
    """
    Reads music-sort.yaml (and an optional credentials.yaml).
    String values of the form ${VAR} are looked up in the environment.

    Environment variables (API_KEY, ROOT_FOLDER, ...) override the file.
    """

    # setting key -> environment variables checked in order
    ENV_OVERRIDES = {
        'oracle.api_key': ('API_KEY', 'OPENAI_API_KEY'),
        'library.root': ('ROOT_FOLDER',),
        'library.inbox': ('INBOX_FOLDER',),
        'sorting.allow_folder_creation': ('ALLOW_FOLDER_CREATION',),
        'sorting.batch_size': ('BATCH_SIZE',),
        'sorting.interval': ('CYCLE_INTERVAL',),
        'oracle.model': ('OPENAI_MODEL',),
        'oracle.base_url': ('OPENAI_BASE_URL',),
    }

    def __init__(
        self,
        config_path: str = "music-sort.yaml",
        credentials_path: str = "credentials.yaml",
        environ: Optional[Dict[str, str]] = None
    ):
        self.config_path = Path(config_path)
        self.credentials_path = Path(credentials_path)
        self.environ = os.environ if environ is None else environ
        self._config: Dict[str, Any] = {}
        self._credentials: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Read both YAML files; a missing config file means built-in defaults"""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self._config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}")
            if not isinstance(self._config, dict):
                raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")
        else:
            self._config = self._default_config()

        # credentials.yaml is optional
        if self.credentials_path.exists():
            with open(self.credentials_path, 'r', encoding='utf-8') as f:
                self._credentials = yaml.safe_load(f) or {}

    def _default_config(self) -> Dict[str, Any]:
        """Defaults used when no config file exists"""
        return {
            'library': {
                'root': '${ROOT_FOLDER}',
            },
            'sorting': {
                'allow_folder_creation': False,
                'batch_size': 50,
                'interval': 60,
                'file_pattern': '*',
                'audio_only': False,
                'skip_hidden': True,
                'lenient_parsing': False,
                'normalize_after_move': False
            },
            'oracle': {
                'api_key': '${API_KEY}',
                'model': DEFAULT_MODEL,
                'base_url': DEFAULT_BASE_URL,
                'timeout': 120
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a setting by dotted key, environment overrides first.

        Examples:
            config.get('library.root')
            config.get('sorting.batch_size', 50)

        Environment overrides win over the file. Values like ${VAR_NAME}
        are expanded from the environment.
        """
        for env_var in self.ENV_OVERRIDES.get(key, ()):
            env_value = self.environ.get(env_var)
            if env_value is not None and env_value.strip():
                return env_value

        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default

        # Expand environment variables
        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return self.environ.get(env_var, default)

        return value

    def get_credential(self, key: str) -> Optional[str]:
        """
        Look up a value in credentials.yaml by dotted key.

        Examples:
            config.get_credential('openai.api_key')
        """
        keys = key.split('.')
        value = self._credentials

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return None

        return value

    def _get_number(self, key: str, default: float, cast=int):
        raw = self.get(key, default)
        try:
            number = cast(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{key} must be a number, got {raw!r}")
        if number <= 0:
            raise ConfigurationError(f"{key} must be positive, got {raw!r}")
        return number

    def build_settings(self) -> SorterSettings:
        """
        Validate and freeze the configuration.

        Raises:
            ConfigurationError: missing/blank API key or root, root or inbox
                not a directory, or invalid numeric/boolean values
        """
        api_key = self.get('oracle.api_key') or self.get_credential('openai.api_key')
        if not api_key or not str(api_key).strip():
            raise ConfigurationError("API_KEY is not set")

        root_value = self.get('library.root')
        if not root_value or not str(root_value).strip():
            raise ConfigurationError("ROOT_FOLDER is not set")

        root = Path(str(root_value).strip()).expanduser().resolve()
        if not root.is_dir():
            raise ConfigurationError(f"ROOT_FOLDER is not a directory: {root}")

        inbox_value = self.get('library.inbox')
        if inbox_value and str(inbox_value).strip():
            inbox = Path(str(inbox_value).strip()).expanduser()
            if not inbox.is_absolute():
                inbox = root / inbox
            inbox = inbox.resolve()
            if not inbox.is_dir():
                raise ConfigurationError(f"Inbox is not a directory: {inbox}")
        else:
            inbox = root

        return SorterSettings(
            api_key=str(api_key).strip(),
            root=root,
            inbox=inbox,
            allow_folder_creation=parse_bool(
                self.get('sorting.allow_folder_creation', False), 'allow_folder_creation'),
            batch_size=self._get_number('sorting.batch_size', 50),
            interval=self._get_number('sorting.interval', 60, cast=float),
            file_pattern=str(self.get('sorting.file_pattern', '*')),
            audio_only=parse_bool(self.get('sorting.audio_only', False), 'audio_only'),
            skip_hidden=parse_bool(self.get('sorting.skip_hidden', True), 'skip_hidden'),
            lenient_parsing=parse_bool(self.get('sorting.lenient_parsing', False), 'lenient_parsing'),
            normalize_after_move=parse_bool(
                self.get('sorting.normalize_after_move', False), 'normalize_after_move'),
            model=str(self.get('oracle.model', DEFAULT_MODEL)),
            base_url=str(self.get('oracle.base_url', DEFAULT_BASE_URL)),
            timeout=self._get_number('oracle.timeout', 120, cast=float)
        )

    def __repr__(self) -> str:
        return f"ConfigManager(config={self.config_path}, credentials={self.credentials_path})"
