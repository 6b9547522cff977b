import os
import typing
import logging
from argparse import ArgumentParser

import yaml
from appdirs import user_data_dir

from mpenc.error import (
    ConfigReadError, ConfigParseError, UnsupportedConfigFormatError, InvalidSettingError
)

log = logging.getLogger(__name__)


NOT_SET = object()
T = typing.TypeVar('T')

ENVIRONMENT_PREFIX = 'MPENC_'
CONFIG_EXTENSIONS = ('.yml', '.yaml')
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class Setting(typing.Generic[T]):
    """
    Class level descriptor of one configuration value. Reading it on a config
    instance walks the instance's `search_order` and falls back to `default`.
    """

    def __init__(self, doc: str, default: typing.Optional[T] = None, metavar: typing.Optional[str] = None):
        self.doc = doc
        self.default = default
        self.metavar = metavar

    def __set_name__(self, owner, name):
        self.name = name  # pylint: disable=attribute-defined-outside-init

    @property
    def cli_name(self):
        return f"--{self.name.replace('_', '-')}"

    @property
    def env_name(self):
        return f"{ENVIRONMENT_PREFIX}{self.name.upper()}"

    def __get__(self, obj: typing.Optional['BaseConfig'], owner) -> T:
        if obj is None:
            return self
        for location in obj.search_order:
            if self.name in location:
                return location[self.name]
        return self.default

    def __set__(self, obj: 'BaseConfig', val: T):
        self.validate(val)
        obj.runtime[self.name] = val

    def validate(self, value):
        raise NotImplementedError()

    def deserialize(self, value):  # pylint: disable=no-self-use
        return value

    def load(self, value) -> T:
        value = self.deserialize(value)
        self.validate(value)
        return value

    def contribute_to_argparse(self, parser: ArgumentParser):
        parser.add_argument(
            self.cli_name,
            help=self.doc,
            metavar=self.metavar,
            default=NOT_SET
        )


class String(Setting[str]):
    def validate(self, value):
        if not isinstance(value, str):
            raise InvalidSettingError(self.name, "must be a string")


class Toggle(Setting[bool]):
    TRUE = ('1', 'true', 'yes', 'on')
    FALSE = ('0', 'false', 'no', 'off')

    def validate(self, value):
        if not isinstance(value, bool):
            raise InvalidSettingError(self.name, "must be a true/false value")

    def deserialize(self, value):
        if isinstance(value, str):
            if value.lower() in self.TRUE:
                return True
            if value.lower() in self.FALSE:
                return False
        return value

    def contribute_to_argparse(self, parser: ArgumentParser):
        parser.add_argument(
            self.cli_name,
            help=self.doc,
            action="store_true",
            default=NOT_SET
        )
        parser.add_argument(
            f"--no-{self.name.replace('_', '-')}",
            help=f"Opposite of {self.cli_name}",
            dest=self.name,
            action="store_false",
            default=NOT_SET
        )


class Path(String):
    def __init__(self, doc: str, *args, default: str = '', **kwargs):
        super().__init__(doc, default, *args, **kwargs)

    def __get__(self, obj, owner) -> str:
        value = super().__get__(obj, owner)
        if isinstance(value, str):
            return os.path.expanduser(os.path.expandvars(value))
        return value


class StringChoice(String):
    def __init__(self, doc: str, valid_values: typing.List[str], default: str, *args, **kwargs):
        super().__init__(doc, default, *args, **kwargs)
        if default not in valid_values:
            raise ValueError(f"Default value must be one of: {', '.join(valid_values)}")
        self.valid_values = valid_values

    def validate(self, value):
        super().validate(value)
        if value not in self.valid_values:
            raise InvalidSettingError(self.name, f"must be one of: {', '.join(self.valid_values)}")


def read_config_file(path: str) -> dict:
    with open(path, 'r') as config_file:
        try:
            serialized = yaml.safe_load(config_file)
        except yaml.YAMLError as e:
            raise ConfigParseError(path) from e
    if serialized is None:
        return {}
    if not isinstance(serialized, dict):
        raise ConfigParseError(path)
    return serialized


class BaseConfig:

    config = Path("Path to configuration file.", metavar='FILE')

    def __init__(self, **kwargs):
        self.runtime = {}      # set in code or by keyword arguments
        self.arguments = {}    # from command line arguments
        self.environment = {}  # from environment variables
        self.persisted = {}    # from config file
        for key, value in kwargs.items():
            setattr(self, key, value)

    @property
    def search_order(self):
        return [
            self.runtime,
            self.arguments,
            self.environment,
            self.persisted
        ]

    @classmethod
    def get_settings(cls):
        for attr in dir(cls):
            setting = getattr(cls, attr)
            if isinstance(setting, Setting):
                yield setting

    @classmethod
    def load_settings(cls, lookup: typing.Callable[[Setting], typing.Any]) -> dict:
        """ Deserialize and validate every setting `lookup` finds a value for. """
        values = {}
        for setting in cls.get_settings():
            value = lookup(setting)
            if value is not NOT_SET:
                values[setting.name] = setting.load(value)
        return values

    @classmethod
    def create_from_arguments(cls, args, environ=None):
        conf = cls()
        conf.set_arguments(args)
        conf.set_environment(environ)
        conf.set_persisted()
        return conf

    @classmethod
    def contribute_to_argparse(cls, parser: ArgumentParser):
        for setting in cls.get_settings():
            setting.contribute_to_argparse(parser)

    def set_arguments(self, args):
        self.arguments = self.load_settings(lambda setting: getattr(args, setting.name, NOT_SET))

    def set_environment(self, environ=None):
        environ = os.environ if environ is None else environ
        self.environment = self.load_settings(lambda setting: environ.get(setting.env_name, NOT_SET))

    @property
    def config_path(self) -> str:
        return self.config

    def set_persisted(self):
        path = self.config_path
        self.persisted = {}
        if not path:
            return
        if os.path.splitext(path)[1] not in CONFIG_EXTENSIONS:
            raise UnsupportedConfigFormatError(path, CONFIG_EXTENSIONS)
        if not os.path.exists(path):
            # only a file the user named has to exist
            if 'config' in self.arguments or 'config' in self.environment:
                raise ConfigReadError(path)
            return
        serialized = read_config_file(path)
        known = {setting.name for setting in self.get_settings()}
        for key in serialized:
            if key not in known:
                log.warning("ignoring unknown setting '%s' in %s", key, path)
        self.persisted = self.load_settings(lambda setting: serialized.get(setting.name, NOT_SET))


class Config(BaseConfig):
    data_dir = Path("Directory path for mpenc settings and keys.", default=user_data_dir('mpenc'), metavar='DIR')
    key_dir = Path("Directory path to store and look up key files, defaults to $data_dir/keys.", metavar='DIR')
    log_level = StringChoice("Logging level of the mpenc logger.", LOG_LEVELS, 'WARNING')
    overwrite_keys = Toggle("Allow keygen to replace existing key files.", False)

    @property
    def config_path(self) -> str:
        return self.config or os.path.join(self.data_dir, 'settings.yml')

    @property
    def key_path(self) -> str:
        return self.key_dir or os.path.join(self.data_dir, 'keys')
