from .loader import load_global_config, load_tables
from .model import GlobalConfig, TableConfig

__all__ = ["GlobalConfig", "TableConfig", "load_global_config", "load_tables"]
