"""Application constants.

This module contains magic strings and numbers used throughout the application.
Centralizing these values makes them easier to maintain and modify.
"""

# Poll Types
# A single-choice poll accepts one option per member, multiple-choice any subset
POLL_TYPE_SINGLE = "single"
POLL_TYPE_MULTIPLE = "multiple"
POLL_TYPES = (POLL_TYPE_SINGLE, POLL_TYPE_MULTIPLE)

# Poll Validation
MIN_POLL_OPTIONS = 2
MAX_POLL_TITLE_LENGTH = 200
MAX_POLL_DESCRIPTION_LENGTH = 2000
MAX_OPTION_TEXT_LENGTH = 500

# Presentation views returned to the dashboard
VIEW_BALLOT = "ballot"
VIEW_RESULTS = "results"

# Cache keys
POLLS_CACHE_KEY = "polls"

# Activity history types recorded by the poll subsystem
HISTORY_POLL_CREATED = "vote_created"
HISTORY_POLL_UPDATED = "vote_updated"
HISTORY_POLL_DELETED = "vote_deleted"
HISTORY_VOTE_SUBMITTED = "vote_submitted"

# Session Token Configuration
# Name of the cookie carrying the member session token
SESSION_COOKIE_NAME = "session_token"
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480
