from sqlalchemy import Column, String
from shredbox.database import Base


class ExpiryEntry(Base):
    __tablename__ = "expiry"

    # Stored filename, identifier plus detected extension.
    name = Column(String(255), primary_key=True)
    # Decimal ASCII Unix seconds.
    expires_at = Column(String(32), nullable=False)
