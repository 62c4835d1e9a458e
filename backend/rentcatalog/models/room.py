from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from rentcatalog.database import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, default="")
    price_per_month = Column(Float, nullable=False, default=0)
    security_deposit = Column(Float, nullable=False, default=0)
    square_feet = Column(Integer, nullable=True)
    photo_urls = Column(ARRAY(String), nullable=False, default=list)

    # Availability
    is_available = Column(Boolean, default=True)
    available_from = Column(DateTime, nullable=True)
    room_type = Column(String, default="PRIVATE")  # PRIVATE, SHARED
    capacity = Column(Integer, default=1)

    amenities = Column(ARRAY(String), nullable=False, default=list)
    features = Column(ARRAY(String), nullable=False, default=list)

    # Timestamps
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    listing = relationship("Listing", back_populates="rooms")

    def __repr__(self):
        return f"<Room {self.id}: {self.name} property={self.property_id}>"
