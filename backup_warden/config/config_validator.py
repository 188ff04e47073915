"""Configuration validation for backup warden."""

import os
from typing import Dict, List, Any


class ConfigValidator:
    """Validates backup warden configuration."""
    
    REQUIRED_FIELDS = ['watch_folder', 'backup_locations', 'retention_days']
    MONITORING_NUMBERS = ['poll_interval_seconds', 'wait_timeout_seconds', 'copy_timeout_seconds']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
    
    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.
        
        Args:
            config: Configuration dictionary to validate.
            
        Raises:
            ValueError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")
        
        self._validate_structure(config)
        self._validate_watch_folder(config['watch_folder'])
        self._validate_backup_locations(config['backup_locations'], config['watch_folder'])
        self._validate_retention(config['retention_days'])
        
        if config.get('monitoring') is not None:
            self._validate_monitoring(config['monitoring'])
        
        if config.get('logging') is not None:
            self._validate_logging(config['logging'])
    
    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate that every required field is present.
        
        Raises:
            ValueError: If required fields are missing.
        """
        missing_fields = [field for field in self.REQUIRED_FIELDS if field not in config]
        if missing_fields:
            raise ValueError(f"Missing required configuration fields: {missing_fields}")
    
    def _validate_watch_folder(self, watch_folder: Any) -> None:
        if not isinstance(watch_folder, str) or not watch_folder.strip():
            raise ValueError("watch_folder must be a non-empty path string")
    
    def _validate_backup_locations(self, locations: List[Any], watch_folder: str) -> None:
        """Validate backup locations configuration.
        
        Args:
            locations: List of backup location paths.
            watch_folder: The watched folder, which no location may sit inside.
            
        Raises:
            ValueError: If backup locations are invalid.
        """
        if not isinstance(locations, list) or not locations:
            raise ValueError("At least one backup location must be configured")
        
        watch_path = resolve_path(watch_folder)
        seen = set()
        
        for i, location in enumerate(locations):
            if not isinstance(location, str) or not location.strip():
                raise ValueError(f"Backup location {i} must be a non-empty path string")
            
            path = resolve_path(location)
            if path in seen:
                raise ValueError(f"Backup location {i} is listed more than once: {location}")
            seen.add(path)
            
            if path == watch_path or path.startswith(watch_path + os.sep):
                raise ValueError(f"Backup location {i} is inside the watch folder: {location}")
    
    def _validate_retention(self, retention_days: Any) -> None:
        if isinstance(retention_days, bool) or not isinstance(retention_days, int) or retention_days < 1:
            raise ValueError(f"retention_days must be a positive integer, got {retention_days!r}")
    
    def _validate_monitoring(self, monitoring: Any) -> None:
        """Validate optional monitoring settings.
        
        Raises:
            ValueError: If a setting is not a positive number.
        """
        if not isinstance(monitoring, dict):
            raise ValueError("monitoring section must be a mapping")
        
        for key in self.MONITORING_NUMBERS:
            value = monitoring.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"monitoring.{key} must be a positive number, got {value!r}")
        
        if 'compare_contents' in monitoring and not isinstance(monitoring['compare_contents'], bool):
            raise ValueError("monitoring.compare_contents must be true or false")
    
    def _validate_logging(self, logging_config: Any) -> None:
        if not isinstance(logging_config, dict):
            raise ValueError("logging section must be a mapping")
        
        level = logging_config.get('level')
        if level is not None and str(level).upper() not in self.LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {self.LOG_LEVELS}, got {level!r}")


def resolve_path(path: str) -> str:
    """Expand ~ and environment variables and make a path absolute."""
    return os.path.abspath(os.path.expanduser(os.path.expandvars(path)))
