from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from rentcatalog.database import Base


class Listing(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)

    # Basic info
    name = Column(String, nullable=False, default="")
    description = Column(Text, default="")
    property_type = Column(String, default="", index=True)  # Rooms, Tinyhouse, Apartment, Villa, Townhouse, Cottage

    # Pricing
    price_per_month = Column(Float, nullable=False, default=0)
    security_deposit = Column(Float, nullable=False, default=0)
    application_fee = Column(Float, nullable=False, default=0)

    # Property details
    beds = Column(Integer, nullable=False, default=1)
    baths = Column(Float, nullable=False, default=1)
    square_feet = Column(Integer, nullable=False, default=0)
    is_pets_allowed = Column(Boolean, default=False)
    is_parking_included = Column(Boolean, default=False)

    # Set-valued tags
    amenities = Column(ARRAY(String), nullable=False, default=list)
    highlights = Column(ARRAY(String), nullable=False, default=list)

    # Media, ordered
    photo_urls = Column(ARRAY(String), nullable=False, default=list)

    # Ownership (manager identity lives with the auth provider)
    manager_cognito_id = Column(String, nullable=False, index=True)

    # One listing owns exactly one location
    location_id = Column(Integer, ForeignKey("locations.id"), unique=True, nullable=False)

    # Timestamps
    posted_date = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    location = relationship("Location", back_populates="listing", uselist=False)
    rooms = relationship("Room", back_populates="listing", order_by="Room.id", passive_deletes=True)
    leases = relationship("Lease", back_populates="listing", passive_deletes=True)
    applications = relationship("Application", back_populates="listing", passive_deletes=True)

    def __repr__(self):
        return f"<Listing {self.id}: {self.name}>"
