"""Configuration management module for capture settings."""

import json
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from config.constants import FormatConstants, LoggingConstants, LogcatConstants
from utils import adb_commands, common

logger = common.get_logger('config_manager')


@dataclass
class CaptureSettings:
    """Logcat capture process settings."""
    arguments: str = LogcatConstants.DEFAULT_ARGUMENTS
    use_adb: bool = False
    serial: Optional[str] = None
    respawn_delay_s: float = LogcatConstants.RESPAWN_DELAY_S


@dataclass
class FormatSettings:
    """Message rendering settings used by console and UI subscribers."""
    template: str = FormatConstants.DEFAULT_TEMPLATE
    date_layout: Optional[str] = FormatConstants.DEFAULT_DATE_LAYOUT


@dataclass
class LoggingSettings:
    """Logging configuration."""
    log_level: str = LoggingConstants.DEFAULT_LOG_LEVEL
    log_to_file: bool = True


@dataclass
class AppConfig:
    """Main application configuration."""
    capture: CaptureSettings
    format: FormatSettings
    logging: LoggingSettings
    version: str = "1.0.0"


class ConfigManager:
    """Manages application configuration persistence and validation."""

    DEFAULT_CONFIG_PATH = '~/.logcat_delegate_config.json'
    BACKUP_SUFFIX = '.backup.json'

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or self.DEFAULT_CONFIG_PATH).expanduser()
        self.backup_path = self.config_path.with_name(self.config_path.stem + self.BACKUP_SUFFIX)
        self._config: Optional[AppConfig] = None
        self._ensure_config_dir()

    def _ensure_config_dir(self):
        """Ensure configuration directory exists."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

    def _create_default_config(self) -> AppConfig:
        """Create default configuration."""
        return AppConfig(
            capture=CaptureSettings(),
            format=FormatSettings(),
            logging=LoggingSettings(),
        )

    def _validate_config(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and clean configuration dictionary."""
        default_config = asdict(self._create_default_config())

        # Merge with defaults for missing keys
        def merge_dict(default: Dict, user: Dict) -> Dict:
            result = default.copy()
            for key, value in user.items():
                if key in result:
                    if isinstance(value, dict) and isinstance(result[key], dict):
                        result[key] = merge_dict(result[key], value)
                    else:
                        result[key] = value
            return result

        validated = merge_dict(default_config, config_dict)

        capture_settings = validated.get('capture', {})
        arguments = capture_settings.get('arguments')
        if not isinstance(arguments, str):
            capture_settings['arguments'] = LogcatConstants.DEFAULT_ARGUMENTS
            logger.warning('Capture arguments invalid, reset to %r', LogcatConstants.DEFAULT_ARGUMENTS)
        else:
            try:
                reserved = adb_commands.find_reserved_argument(arguments)
            except ValueError:
                reserved = arguments
            if reserved is not None:
                capture_settings['arguments'] = LogcatConstants.DEFAULT_ARGUMENTS
                logger.warning('Capture arguments contain reserved %r, reset to %r',
                               reserved, LogcatConstants.DEFAULT_ARGUMENTS)
        delay = capture_settings.get('respawn_delay_s')
        if not isinstance(delay, (int, float)) or isinstance(delay, bool) or delay < 0:
            capture_settings['respawn_delay_s'] = LogcatConstants.RESPAWN_DELAY_S
            logger.warning('Respawn delay invalid, reset to %.1f seconds', LogcatConstants.RESPAWN_DELAY_S)
        if not isinstance(capture_settings.get('use_adb'), bool):
            capture_settings['use_adb'] = False
            logger.warning('use_adb invalid, reset to False')

        format_settings = validated.get('format', {})
        if not isinstance(format_settings.get('template'), str) or not format_settings['template']:
            format_settings['template'] = FormatConstants.DEFAULT_TEMPLATE
            logger.warning('Format template invalid, reset to default')

        logging_settings = validated.get('logging', {})
        level = str(logging_settings.get('log_level', '')).upper()
        if level not in LoggingConstants.VALID_LOG_LEVELS:
            logging_settings['log_level'] = LoggingConstants.DEFAULT_LOG_LEVEL
            logger.warning('Log level invalid, reset to %s', LoggingConstants.DEFAULT_LOG_LEVEL)
        else:
            logging_settings['log_level'] = level
        if not isinstance(logging_settings.get('log_to_file'), bool):
            logging_settings['log_to_file'] = True
            logger.warning('log_to_file invalid, reset to True')

        return validated

    def _config_from_dict(self, config_dict: Dict[str, Any]) -> AppConfig:
        validated_dict = self._validate_config(config_dict)
        return AppConfig(
            capture=CaptureSettings(**validated_dict['capture']),
            format=FormatSettings(**validated_dict['format']),
            logging=LoggingSettings(**validated_dict['logging']),
            version=validated_dict.get('version', '1.0.0'),
        )

    def load_config(self) -> AppConfig:
        """Load configuration from file."""
        if self._config is not None:
            return self._config

        try:
            if self.config_path.exists():
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config_dict = json.load(f)
                self._config = self._config_from_dict(config_dict)
                logger.info(f'Configuration loaded from {self.config_path}')
            else:
                self._config = self._create_default_config()
                logger.info('Created default configuration')

        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f'Failed to load config: {e}')
            # Try backup if available
            if self.backup_path.exists():
                try:
                    logger.info('Attempting to load from backup')
                    with open(self.backup_path, 'r', encoding='utf-8') as f:
                        config_dict = json.load(f)
                    self._config = self._config_from_dict(config_dict)
                    logger.info('Configuration loaded from backup')
                except (OSError, ValueError, TypeError, AttributeError) as backup_error:
                    logger.error(f'Backup config also failed: {backup_error}')
                    self._config = self._create_default_config()
            else:
                self._config = self._create_default_config()

        return self._config

    def save_config(self, config: Optional[AppConfig] = None):
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            logger.warning('No configuration to save')
            return

        try:
            # Create backup of existing config
            if self.config_path.exists():
                try:
                    shutil.copy2(self.config_path, self.backup_path)
                except OSError as e:
                    logger.warning(f'Failed to create config backup: {e}')

            config_dict = asdict(config)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=4, ensure_ascii=False)

            self._config = config
            logger.info(f'Configuration saved to {self.config_path}')

        except OSError as e:
            logger.error(f'Failed to save config: {e}')
            raise

    def get_capture_settings(self) -> CaptureSettings:
        """Get capture settings."""
        return self.load_config().capture

    def get_format_settings(self) -> FormatSettings:
        """Get format settings."""
        return self.load_config().format

    def get_logging_settings(self) -> LoggingSettings:
        """Get logging settings."""
        return self.load_config().logging

    def update_capture_settings(self, **kwargs):
        """Update capture settings.

        Raises:
            ReservedArgumentError: ``arguments`` would override the output format.
        """
        arguments = kwargs.get('arguments')
        if arguments is not None:
            reserved = adb_commands.find_reserved_argument(arguments)
            if reserved is not None:
                from modules.logcat.errors import ReservedArgumentError
                raise ReservedArgumentError(reserved)

        config = self.load_config()
        for key, value in kwargs.items():
            if hasattr(config.capture, key):
                setattr(config.capture, key, value)
        self.save_config(config)

    def update_format_settings(self, **kwargs):
        """Update format settings."""
        config = self.load_config()
        for key, value in kwargs.items():
            if hasattr(config.format, key):
                setattr(config.format, key, value)
        self.save_config(config)

    def reset_to_defaults(self):
        """Reset configuration to defaults."""
        self._config = self._create_default_config()
        self.save_config()
        logger.info('Configuration reset to defaults')

    def export_config(self, filepath: str):
        """Export configuration to file."""
        config = self.load_config()
        export_path = Path(filepath).expanduser()

        try:
            with open(export_path, 'w', encoding='utf-8') as f:
                json.dump(asdict(config), f, indent=4, ensure_ascii=False)
            logger.info(f'Configuration exported to {export_path}')
        except OSError as e:
            logger.error(f'Failed to export config: {e}')
            raise

    def import_config(self, filepath: str):
        """Import configuration from file."""
        import_path = Path(filepath).expanduser()

        try:
            with open(import_path, 'r', encoding='utf-8') as f:
                config_dict = json.load(f)
            imported_config = self._config_from_dict(config_dict)
            self.save_config(imported_config)
            logger.info(f'Configuration imported from {import_path}')

        except (OSError, ValueError) as e:
            logger.error(f'Failed to import config: {e}')
            raise
