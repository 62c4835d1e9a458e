from rentcatalog.models.location import Location
from rentcatalog.models.listing import Listing
from rentcatalog.models.room import Room
from rentcatalog.models.lease import Lease
from rentcatalog.models.application import Application

__all__ = ["Location", "Listing", "Room", "Lease", "Application"]
