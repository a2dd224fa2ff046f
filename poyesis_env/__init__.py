"""
Poyesis Env - Python Package

Synchronizes local environment files with the Poyesis secret storage API,
keeping an envs.json mapping of file names to remote secrets.
"""

__version__ = "1.0.0"
__author__ = "Poyesis Env Team"
__description__ = "Synchronize local .env files with the Poyesis secret storage API"

# Core imports for external use
from .cli import main as cli_main

__all__ = [
  "cli_main",
  "__version__",
]
