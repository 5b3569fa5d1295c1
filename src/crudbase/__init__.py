"""CrudBase - Collection-based JSON record storage over HTTP.

Records live in named collections behind a pluggable storage backend
(JSON file or in-memory) chosen from the environment, with failover.
"""

__version__ = "0.1.0"
