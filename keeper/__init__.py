"""
HomeKeeper - Linux workstation state backup, restore and maintenance suite.

A small, modular tool for looking after a single user's desktop:
- Timestamped backups of home directory state, optionally encrypted
- Restore onto a fresh machine with per-item confirmation or dry-run
- Baseline package installation
- Disk space cleanup
"""

__version__ = "0.1.0"
__author__ = "HomeKeeper Contributors"
