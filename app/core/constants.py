"""
Ledger and reporting constants.
"""

# Header carrying the acting user until authentication is wired in front of the API
ACTOR_HEADER = "X-Actor-Id"

# Audit details recorded for web-originated access events
DEFAULT_ACCESS_METHOD = "web"

# Reports
POPULAR_RESOURCES_LIMIT = 10
ACTIVITY_PAGE_SIZE = 50
MAX_ACTIVITY_PAGE_SIZE = 200

# Row ids are stored as signed 64-bit SQLite INTEGERs
MIN_ROW_ID = -(2 ** 63)
MAX_ROW_ID = 2 ** 63 - 1
