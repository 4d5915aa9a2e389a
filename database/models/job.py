import uuid

from sqlalchemy import Column, Text, Date, TIMESTAMP, Index, func

from .base import Base, JSONType


class JobPost(Base):
    """
    A posted job as written by the ingestion side.

    Only the fields that matching reads are mapped. The loosely-typed
    location, salary_range and application blobs stay JSON; the normalizer
    is responsible for interpreting them.
    """
    __tablename__ = 'jobs'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))

    role = Column(Text)
    related_roles = Column(JSONType)
    ai_enhanced_roles = Column(JSONType)
    skills_required = Column(JSONType)
    ai_enhanced_skills = Column(JSONType)

    location = Column(JSONType)  # {city, state, country, remote} or a string
    salary_range = Column(JSONType)  # {min, max, period, currency}
    application = Column(JSONType)  # {method, email, url, phone}

    experience_level = Column(Text)
    employment_type = Column(Text)
    sector = Column(Text)

    posted_date = Column(Date, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_jobs_posted_date', 'posted_date'),
    )

    def to_record(self) -> dict:
        """Plain mapping consumed by the match engine."""
        return {
            'id': self.id,
            'role': self.role,
            'related_roles': self.related_roles,
            'ai_enhanced_roles': self.ai_enhanced_roles,
            'skills_required': self.skills_required,
            'ai_enhanced_skills': self.ai_enhanced_skills,
            'location': self.location,
            'experience_level': self.experience_level,
            'salary_range': self.salary_range,
            'employment_type': self.employment_type,
            'sector': self.sector,
            'application': self.application,
            'posted_date': self.posted_date,
        }
