from .config import NeurodxConfig, load_config

__all__ = ["NeurodxConfig", "load_config"]
