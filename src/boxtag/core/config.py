"""Configuration management for boxtag."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class AppConfig:
    """
    Application configuration settings.

    Stores user preferences and detector settings.
    """

    default_directory: str = ""
    yolo_model_path: str = ""
    confidence_threshold: float = 0.25
    iou_threshold: float = 0.45  # NMS threshold used by the detector
    line_thickness: int = 2
    font_size: int = 10
    max_display_width: int = 900  # Images are scaled down to fit, never up
    max_display_height: int = 700
    delete_shape_key: str = "Delete"  # Key/combination to delete the selected box
    deselect_key: str = "Escape"  # Key/combination to clear the selection
    export_directory: str = ""  # Empty means next to the working directory

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "defaultDirectory": self.default_directory,
            "yoloModelPath": self.yolo_model_path,
            "confidenceThreshold": self.confidence_threshold,
            "iouThreshold": self.iou_threshold,
            "lineThickness": self.line_thickness,
            "fontSize": self.font_size,
            "maxDisplayWidth": self.max_display_width,
            "maxDisplayHeight": self.max_display_height,
            "deleteShapeKey": self.delete_shape_key,
            "deselectKey": self.deselect_key,
            "exportDirectory": self.export_directory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create config from dictionary."""
        return cls(
            default_directory=data.get("defaultDirectory", ""),
            yolo_model_path=data.get("yoloModelPath", ""),
            confidence_threshold=data.get("confidenceThreshold", 0.25),
            iou_threshold=data.get("iouThreshold", 0.45),
            line_thickness=data.get("lineThickness", 2),
            font_size=data.get("fontSize", 10),
            max_display_width=data.get("maxDisplayWidth", 900),
            max_display_height=data.get("maxDisplayHeight", 700),
            delete_shape_key=data.get("deleteShapeKey", "Delete"),
            deselect_key=data.get("deselectKey", "Escape"),
            export_directory=data.get("exportDirectory", ""),
        )


class ConfigManager:
    """
    Manager for loading and saving application configuration.

    Handles YAML serialization and provides a clean interface
    for configuration access.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = config_path
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            AppConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return AppConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
            return AppConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return AppConfig()
        except Exception as e:
            logger.error(f"Error loading config: {e}")
            return AppConfig()

    def save(self, config: Optional[AppConfig] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Configuration to save, or use current config

        Returns:
            True if save was successful
        """
        if config is not None:
            self._config = config

        if self._config is None:
            logger.warning("No configuration to save")
            return False

        try:
            with open(self.config_path, "w") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except Exception as e:
            logger.error(f"Error saving config: {e}")
            return False

    def update(self, **kwargs: Any) -> None:
        """
        Update configuration with new values.

        Args:
            **kwargs: Key-value pairs to update
        """
        config = self.config
        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")
        self.save()
