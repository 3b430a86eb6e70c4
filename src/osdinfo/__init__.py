"""osdinfo: record deployment metadata in the registry and in WMI."""

__version__ = "0.1.0"
