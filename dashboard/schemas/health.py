from datetime import datetime
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    service: str
    db_connected: bool
    redis_connected: bool
    timestamp: datetime
