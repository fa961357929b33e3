# backend/mcaptracker/db/models.py

from sqlalchemy import BigInteger, CheckConstraint, Column, Float, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class McapRecord(Base):
    __tablename__ = "mcap"
    __table_args__ = (CheckConstraint("value >= 0", name="ck_mcap_value_non_negative"),)

    # One row per tracked mint; the service only ever writes one.
    mint = Column(String, primary_key=True)
    value = Column(Float, nullable=False, default=0.0)
    sol_price = Column("sol_price", Float, nullable=False)
    timestamp = Column(BigInteger, nullable=False)

    def __repr__(self):
        return f"<McapRecord(mint='{self.mint}', value={self.value})>"
