from app.models.base import Base
from app.models.station import Station

__all__ = ["Base", "Station"]
