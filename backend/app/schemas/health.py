from .base import CamelModel


class HealthResponse(CamelModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str
    database: str


class HealthLiteResponse(CamelModel):
    status: str
