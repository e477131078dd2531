from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()

# ==================== MODELO DE RESPOSTA ====================

class Response(Base):
    """One respondent's needs-assessment submission."""
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    unit = Column(String(100), nullable=False, index=True)

    # Free text, all optional
    reporting_reality = Column(Text, default="")
    unused_reports = Column(Text, default="")
    blindspot = Column(Text, default="")
    distrust_source = Column(Text, default="")
    urgent_periods = Column(Text, default="")
    magic_wand = Column(Text, default="")
    underused_tools = Column(Text, default="")
    lifecycle_data = Column(Text, default="")
    data_contact = Column(Text, default="")

    # Self-ratings
    confidence = Column(Integer, nullable=True)  # 1-5
    literacy_level = Column(String(1), nullable=True)  # "1".."5"

    # Multi-select tags
    training_methods = Column(JSON, default=list)
    lifecycle_role = Column(JSON, default=list)

    submitted_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    def __repr__(self):
        return f"<Response(id={self.id}, unit={self.unit}, name={self.name})>"
