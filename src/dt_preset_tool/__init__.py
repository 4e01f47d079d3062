"""DT Preset Tool - export, import and manage Draw Things generation presets."""

__version__ = "0.1.0"
