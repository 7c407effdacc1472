"""Configuration management for odbkit.

The repository config is the same file Git reads (<git-dir>/config), so it
is parsed the way Git writes it: tab-indented keys, repeated keys (the last
one wins), keys without a value (Git's implicit "true"), double-quoted
values and subsections such as [remote "origin"].
"""

import os
import configparser
from pathlib import Path
from typing import Optional, Dict, Tuple

from odbkit.errors import ConfigError

TRUE_VALUES = ('true', 'yes', 'on', '1')
FALSE_VALUES = ('false', 'no', 'off', '0', '')


def split_key(name: str) -> Tuple[str, str]:
    """
    Split a dotted Git key into (section, key).

    'user.name' -> ('user', 'name')
    'remote.origin.url' -> ('remote "origin"', 'url')
    A name without a dot is looked up in the core section.
    """
    if '.' not in name:
        return 'core', name.lower()
    section, _, key = name.partition('.')
    subsection, dot, key_tail = key.rpartition('.')
    if dot:
        return f'{section.lower()} "{subsection}"', key_tail.lower()
    return section.lower(), key.lower()


def join_key(section: str, key: str) -> str:
    """Inverse of split_key: ('remote "origin"', 'url') -> 'remote.origin.url'."""
    name, _, subsection = section.partition(' ')
    subsection = subsection.strip('"')
    if subsection:
        return f'{name}.{subsection}.{key}'
    return f'{section}.{key}'


def _unquote(value: Optional[str]) -> str:
    if value is None:
        # "[core]\n\tbare" means bare = true
        return 'true'
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1].replace('\\"', '"').replace('\\\\', '\\')
    return value


def _new_parser() -> configparser.ConfigParser:
    return configparser.ConfigParser(
        strict=False,
        allow_no_value=True,
        interpolation=None,
        delimiters=('=',),
        comment_prefixes=('#', ';'),
        inline_comment_prefixes=('#', ';'),
    )


def _load(path: Path) -> configparser.ConfigParser:
    parser = _new_parser()
    if path.exists():
        try:
            parser.read(path, encoding='utf-8')
        except (configparser.Error, UnicodeDecodeError) as e:
            raise ConfigError(f"Invalid config file {path}: {e}", {'path': str(path)})
    return parser


class Config:
    """
    Reads and writes odbkit configuration.

    - Global config: ~/.odbkitconfig
    - Repository config: <git-dir>/config, shared with Git

    Lookup order is environment (ODBKIT_<SECTION>_<KEY>), then the
    repository config, then the global config, then the caller's fallback.
    Rewriting a file keeps one value per key, so repeated keys collapse to
    the last one.
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.odbkitconfig'

    def __init__(self, repo_config_path: Optional[Path] = None):
        self.repo_config_path = Path(repo_config_path) if repo_config_path else None
        self._global_config = None
        self._repo_config = None

    @property
    def global_config(self) -> configparser.ConfigParser:
        if self._global_config is None:
            self._global_config = _load(self.GLOBAL_CONFIG_PATH)
        return self._global_config

    @property
    def repo_config(self) -> Optional[configparser.ConfigParser]:
        if self._repo_config is None and self.repo_config_path:
            self._repo_config = _load(self.repo_config_path)
        return self._repo_config

    def load(self) -> None:
        """
        Parse both config files now instead of on first lookup.

        Raises:
            ConfigError: If either file cannot be parsed
        """
        self.repo_config
        self.global_config

    def _scopes(self):
        if self.repo_config is not None:
            yield self.repo_config
        yield self.global_config

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Args:
            section: Config section (e.g. 'user', 'remote "origin"')
            key: Config key (e.g. 'name'); keys are case-insensitive
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        env_key = f"ODBKIT_{section.upper()}_{key.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value

        for parser in self._scopes():
            if parser.has_option(section, key):
                return _unquote(parser.get(section, key))

        return fallback

    def get_int(self, section: str, key: str, fallback: int) -> int:
        """Get an integer value, accepting Git's k/m/g suffixes."""
        value = self.get(section, key)
        if value is None:
            return fallback
        scale = {'k': 1024, 'm': 1024 ** 2, 'g': 1024 ** 3}.get(value[-1:].lower(), 1)
        digits = value[:-1] if scale > 1 else value
        try:
            return int(digits) * scale
        except ValueError:
            raise ConfigError(f"{section}.{key} must be an integer, got {value!r}",
                              {'key': join_key(section, key)})

    def get_bool(self, section: str, key: str, fallback: bool) -> bool:
        """Get a boolean value using Git's spellings (true/yes/on/1, false/no/off/0)."""
        value = self.get(section, key)
        if value is None:
            return fallback
        if value.lower() in TRUE_VALUES:
            return True
        if value.lower() in FALSE_VALUES:
            return False
        raise ConfigError(f"{section}.{key} must be a boolean, got {value!r}",
                          {'key': join_key(section, key)})

    def _target(self, global_config: bool) -> Tuple[configparser.ConfigParser, Path]:
        if global_config:
            return self.global_config, self.GLOBAL_CONFIG_PATH
        if not self.repo_config_path:
            raise ConfigError("No repository config path available")
        return self.repo_config, self.repo_config_path

    @staticmethod
    def _save(parser: configparser.ConfigParser, path: Path) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            parser.write(f)

    def set(self, section: str, key: str, value: str, global_config: bool = False) -> None:
        """Set a value in the repository config, or the global one."""
        parser, path = self._target(global_config)
        if not parser.has_section(section):
            parser.add_section(section)
        parser.set(section, key, value)
        self._save(parser, path)

    def unset(self, section: str, key: str, global_config: bool = False) -> bool:
        """
        Remove a configuration value.

        Returns:
            True if value was removed, False if it didn't exist
        """
        if not global_config and not self.repo_config_path:
            return False
        parser, path = self._target(global_config)
        if not parser.has_option(section, key):
            return False

        parser.remove_option(section, key)
        if not parser.options(section):
            parser.remove_section(section)
        self._save(parser, path)
        return True

    def list_all(self) -> Dict[str, str]:
        """
        All values as dotted Git keys, repository values overriding global ones.

        Returns:
            Dict such as {'user.name': 'Jane', 'remote.origin.url': '...'}
        """
        result: Dict[str, str] = {}
        for parser in reversed(list(self._scopes())):
            for section in parser.sections():
                for key, value in parser.items(section):
                    result[join_key(section, key)] = _unquote(value)
        return result

    def get_user_identity(self) -> tuple:
        """
        Get user name and email for commits.

        Returns:
            Tuple of (name, email), either may be None
        """
        return self.get('user', 'name'), self.get('user', 'email')


def get_config(repo=None) -> Config:
    """Config for repo, or global-only config when repo is None."""
    if repo:
        return Config(repo.config_file)
    return Config()
