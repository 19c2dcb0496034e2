"""
Constants - Application-wide defaults.
"""

from pathlib import Path


TOOLKIT_VERSION = "1.0.0"

# GitHub caps GraphQL connections at 100 nodes per page.
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100

# Field lists are fetched as a single page; project discovery pages at this size.
FIELDS_PAGE_SIZE = 50
DISCOVERY_PAGE_SIZE = 50

DEFAULT_STALE_AFTER_DAYS = 7

DEFAULT_CONFIG_DIR = Path(".pulsegh")
SNAPSHOT_FILENAME = "config.yaml"
PERMISSIONS_FILENAME = "user.yaml"

GITHUB_API_URL = "https://api.github.com"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_TIMEOUT = 30.0

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
