from .config import SettingsManager

__all__ = ["SettingsManager"]
