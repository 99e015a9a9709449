"""Version metadata for Despachante Manager."""

__version__ = "0.4.0"
__app_name__ = "Despachante Manager"
__company__ = "Despachante Manager"
