import os
import re
from configparser import ConfigParser, NoOptionError, NoSectionError
from typing import Any, Dict, Optional


class ConfigManager:
    """
    Read-once configuration for the console itself (logging, bridge, TUI behaviour).

    The daemon's own settings live in a TOML file handled by ``data.settings``;
    this only covers options of the console process.
    """

    def __init__(self, config_file: Optional[str] = None):
        self.base_config = self._load_configs(config_file)
        self.overrides: Dict[str, Dict[str, Any]] = {}

    def _load_configs(self, config_file: Optional[str] = None) -> ConfigParser:
        """
        Load and merge configuration files
        :param config_file: optional path to a custom config file
        :return: ConfigParser object
        """
        default_config_file = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.ini')
        if not os.path.exists(default_config_file):
            raise FileNotFoundError(f'Could not find the default config file at {default_config_file}')

        config = ConfigParser()
        config.read(default_config_file)

        # The packaged defaults name a per-user file that may override them
        if 'user_config' in config['DEFAULT']:
            user_config = self.resolve_file_path(config['DEFAULT']['user_config'])
            if user_config is not None:
                config.read(user_config)

        if config_file is not None:
            file = self.resolve_file_path(config_file)
            if file is None:
                raise FileNotFoundError(f'Could not find the custom config file at {config_file}')
            config.read(file)

        return config

    def set_option(self, section: str, option: str, value: Any) -> None:
        """Runtime override, e.g. from a command line flag"""
        self.overrides.setdefault(section, {})[option] = value

    def get_option(self, section: str, option: str, fallback: Any = None) -> Any:
        """
        Get a setting from the configuration
        :param section: the section to get the setting from
        :param option: the option to get
        :param fallback: the value to return if the option is not found
        :return: the setting value
        """
        if option in self.overrides.get(section, {}):
            return self.overrides[section][option]
        try:
            return ConfigManager.fix_values(self.base_config.get(section, option))
        except (NoSectionError, NoOptionError):
            return fallback

    def get_all_options_from_section(self, section: str) -> Dict[str, Any]:
        if not self.base_config.has_section(section):
            return dict(self.overrides.get(section, {}))
        options = {k: ConfigManager.fix_values(v) for k, v in self.base_config.items(section)}
        options.update(self.overrides.get(section, {}))
        return options

    @staticmethod
    def fix_values(value: Any) -> Any:
        """Fix some values due to how they are stored and retrieved with ConfigParser"""
        if isinstance(value, str):
            value = value.strip()

            # Only expand strings that clearly look like paths
            if value.startswith(('~', './', '/')):
                value = os.path.expanduser(value)

            if value.startswith('[') and value.endswith(']'):
                return [ConfigManager.fix_values(item.strip()) for item in re.findall(r'[^,\s]+', value[1:-1])]

            if value.isdigit():
                return int(value)

            if re.fullmatch(r'\d+\.\d+', value):
                return float(value)

            lower_value = value.lower()
            if lower_value in ('true', 'yes', 'on'):
                return True
            if lower_value in ('false', 'no', 'off'):
                return False

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                return value[1:-1]

        return value

    @staticmethod
    def resolve_file_path(file_name: Optional[str], base_dir: Optional[str] = None) -> Optional[str]:
        """
        Works out the path to a file based on the filename and optional base directory
        :param file_name: name of the file to resolve the path to
        :param base_dir: optional base directory for relative names (defaults to the working directory)
        :return: absolute path to the file or None
        """
        if not file_name:
            return None

        if base_dir is None:
            base_dir = os.getcwd()
        elif not os.path.isabs(base_dir):
            main_dir = os.path.dirname(os.path.abspath(__file__))
            base_dir = os.path.abspath(os.path.join(main_dir, base_dir))
        base_dir = os.path.expanduser(base_dir)

        file_name = os.path.expanduser(file_name)
        if os.path.isabs(file_name):
            return file_name if os.path.isfile(file_name) else None

        if not os.path.isdir(base_dir):
            return None
        full_path = os.path.join(base_dir, file_name)
        if os.path.isfile(full_path):
            return full_path
        return None
