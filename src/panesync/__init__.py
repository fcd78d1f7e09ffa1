"""panesync - pane activity suppression, cached lookups and incremental screen sync"""

__version__ = "0.1.0"
