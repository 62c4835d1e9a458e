from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from rentcatalog.database import Base


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_cognito_id = Column(String, nullable=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    rent = Column(Float, nullable=True)
    deposit = Column(Float, nullable=True)

    listing = relationship("Listing", back_populates="leases")

    def __repr__(self):
        return f"<Lease {self.id} property={self.property_id} start={self.start_date}>"
