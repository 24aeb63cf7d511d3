from .loader import load_settings
from .models import PathsSettings, ServerSettings, Settings, StreamSettings

__all__ = ["load_settings", "Settings", "PathsSettings", "ServerSettings", "StreamSettings"]
