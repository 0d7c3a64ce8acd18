"""
FOCUS report sync job

Mirrors OCI FOCUS cost reports into a GCS staging bucket and re-keys them
into a Hive-partitioned bucket for analytical querying.
"""

__version__ = "1.0.0"
