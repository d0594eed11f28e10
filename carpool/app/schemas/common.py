"""
Shared schema building blocks.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel

from carpool.app.core.clock import ensure_utc

# Datetimes leave (and enter) the API as timezone-aware UTC
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str
