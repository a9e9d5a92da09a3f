"""Scheduled background jobs run by the dramatiq worker (``dramatiq api.task``).

Importing ``api`` first configures the Redis broker the actors register with.
"""

import api  # noqa: F401
