# Config package for CVE ingest
from .settings import DBConfig, Settings, get_db_config, get_settings

__all__ = ['DBConfig', 'Settings', 'get_db_config', 'get_settings']
