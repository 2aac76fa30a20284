from . import annotate, archive, assets, channels, search, settings

__all__ = [
    "annotate",
    "archive",
    "assets",
    "channels",
    "search",
    "settings",
]
