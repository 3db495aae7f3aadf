from .settings import Settings, StoreSettings, AnalyticsSettings, ValidationSettings, get_settings

__all__ = ["Settings", "StoreSettings", "AnalyticsSettings", "ValidationSettings", "get_settings"]
