import logging
from datetime import date
from typing import List, Optional, Dict, Any

from sqlalchemy import select

from database.models import JobPost
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class JobPostRepository(BaseRepository):
    def get_by_id(self, job_id: Any) -> Optional[JobPost]:
        stmt = select(JobPost).where(JobPost.id == str(job_id))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_ids_posted_on(self, posted_on: date) -> List[str]:
        stmt = select(JobPost.id).where(JobPost.posted_date == posted_on)
        return list(self.db.execute(stmt).scalars().all())

    def create_job_post(self, job_data: Dict[str, Any]) -> JobPost:
        """Insert a job from a raw mapping. Unknown keys are ignored."""
        columns = {c.name for c in JobPost.__table__.columns}
        job_post = JobPost(**{k: v for k, v in job_data.items() if k in columns})
        self.db.add(job_post)
        self.db.flush()
        return job_post
