"""
CLI exit codes.

The find command uses SUCCESS when a match is found and NO_MATCH otherwise;
dedupe and cache use SUCCESS whether or not duplicates were found.
"""

SUCCESS: int = 0
NO_MATCH: int = 1
CONFIG_ERROR: int = 2
IO_ERROR: int = 3
