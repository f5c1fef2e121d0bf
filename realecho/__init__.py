"""
Application package containing configuration, persistence, and service layers
for the RealEcho pronunciation coaching API.
"""

__all__ = [
    "config",
    "errors",
    "time_utils",
    "db",
    "repositories",
    "models",
    "schemas",
    "services",
]
