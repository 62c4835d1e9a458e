from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from rentcatalog.database import Base


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_cognito_id = Column(String, nullable=True)

    status = Column(String, default="Pending")  # Pending, Denied, Approved
    application_date = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    listing = relationship("Listing", back_populates="applications")

    def __repr__(self):
        return f"<Application {self.id} property={self.property_id} status={self.status}>"
