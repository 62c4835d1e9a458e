from geoalchemy2 import Geometry
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from rentcatalog.database import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)

    # Address components
    address = Column(String, nullable=False)  # Street
    city = Column(String, nullable=False, index=True)
    state = Column(String, nullable=True)  # Region, optional
    country = Column(String, nullable=False)
    postal_code = Column(String, nullable=True)

    # Set only from a successful geocode, (longitude, latitude) in WGS84
    coordinates = Column(Geometry(geometry_type="POINT", srid=4326), nullable=False)

    listing = relationship("Listing", back_populates="location", uselist=False)

    def __repr__(self):
        return f"<Location {self.id}: {self.address}, {self.city}>"
