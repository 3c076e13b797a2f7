from .json import JsonExporter

__all__ = ["JsonExporter"]
