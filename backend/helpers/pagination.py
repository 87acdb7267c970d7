"""
Query parameters shared by the list endpoints.

Members page through their own reports and appeals; moderators page through
the review queues, which can be much longer.
"""

from fastapi import Query
from typing import Annotated

DEFAULT_PAGE_SIZE = 50

PaginationSkip = Annotated[int, Query(ge=0, description="Number of records to skip")]

# A member's own reports or appeals
OwnListLimit = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]

# Moderator review queues
ReviewQueueLimit = Annotated[
    int, Query(ge=1, le=200, description="Maximum number of records to return")
]
