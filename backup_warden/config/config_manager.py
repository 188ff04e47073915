"""Configuration management for the backup warden daemon."""

import os
import yaml
from typing import Dict, List, Any, Optional
from .config_validator import ConfigValidator, resolve_path
from ..core.models import WardenConfig


class ConfigManager:
    """Manages configuration loading and validation for backup warden.
    
    Files are parsed as YAML; JSON config files load unchanged since JSON is
    a subset of YAML.
    """
    
    DEFAULT_CONFIG_LOCATIONS = [
        "config.yaml",
        "config.yml",
        "backup_warden_config.json",
        os.path.expanduser("~/.backup-warden/config.yaml"),
        os.path.expanduser("~/.backup-warden/config.yml"),
        "/etc/backup-warden/config.yaml"
    ]
    
    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.
        
        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()
        
    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.
        
        Returns:
            Dictionary containing configuration data.
            
        Raises:
            FileNotFoundError: If config file cannot be found.
            ValueError: If config file is invalid.
        """
        config_file = self._find_config_file()
        
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_file}: {e}")
        except OSError as e:
            raise ValueError(f"Error reading config file {config_file}: {e}")
        
        # Validate configuration
        self.validator.validate(self.config_data)
        
        # Set defaults
        self._set_defaults()
        
        return self.config_data
    
    def _find_config_file(self) -> str:
        """Find configuration file in default locations.
        
        Returns:
            Path to configuration file.
            
        Raises:
            FileNotFoundError: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")
        
        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location
        
        raise FileNotFoundError(
            f"Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy config.example.yaml to config.yaml and customize it."
        )
    
    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        defaults = {
            'monitoring': {
                'poll_interval_seconds': 3600,
                'wait_timeout_seconds': 60,
                'compare_contents': True,
                'copy_timeout_seconds': None
            },
            'logging': {
                'level': 'INFO',
                'file': None
            }
        }
        
        # Merge defaults with existing config
        for section, section_defaults in defaults.items():
            if not self.config_data.get(section):
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value
    
    def get_backup_locations(self) -> List[str]:
        """Get all configured backup location paths.
        
        Returns:
            List of backup location paths, in configured order.
        """
        return [resolve_path(path) for path in self.config_data.get('backup_locations', [])]
    
    def get_monitoring_config(self) -> Dict[str, Any]:
        """Get monitoring configuration.
        
        Returns:
            Monitoring configuration dictionary.
        """
        return self.config_data.get('monitoring', {})
    
    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration.
        
        Returns:
            Logging configuration dictionary.
        """
        return self.config_data.get('logging', {})
    
    def get_warden_config(self) -> WardenConfig:
        """Build the immutable runtime configuration.
        
        Returns:
            WardenConfig with absolute paths.
        """
        monitoring = self.get_monitoring_config()
        copy_timeout = monitoring.get('copy_timeout_seconds')
        
        return WardenConfig(
            watch_folder=resolve_path(self.config_data['watch_folder']),
            backup_locations=tuple(self.get_backup_locations()),
            retention_days=self.config_data['retention_days'],
            poll_interval=float(monitoring.get('poll_interval_seconds', 3600)),
            wait_timeout=float(monitoring.get('wait_timeout_seconds', 60)),
            compare_contents=monitoring.get('compare_contents', True),
            copy_timeout=float(copy_timeout) if copy_timeout else None
        )
