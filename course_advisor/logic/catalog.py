"""
Course Catalog

Read-only sources of candidate courses for the rule engine: an in-memory
catalog (tests, fixtures) and a SQLAlchemy-backed catalog with a TTL cache.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .contracts import Course
from .errors import CatalogUnavailable
from ..models import CourseRecord

logger = logging.getLogger(__name__)


class CatalogCache:
    """
    Holds one snapshot of the catalog for `ttl_seconds`.

    Expiry compares monotonic timestamps, so wall-clock changes do not
    affect it.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._courses: Optional[List[Course]] = None
        self._loaded_at: Optional[float] = None

    def get(self) -> Optional[List[Course]]:
        if self._courses is None or self._loaded_at is None:
            return None
        if self._clock() - self._loaded_at >= self.ttl_seconds:
            return None
        return list(self._courses)

    def put(self, courses: List[Course]) -> None:
        self._courses = list(courses)
        self._loaded_at = self._clock()

    def invalidate(self) -> None:
        self._courses = None
        self._loaded_at = None


class CourseCatalog(ABC):

    @abstractmethod
    def get_all(self) -> List[Course]:
        ...


class InMemoryCourseCatalog(CourseCatalog):

    def __init__(self, courses: List[Course]):
        self._courses = list(courses)

    def get_all(self) -> List[Course]:
        return list(self._courses)


def record_to_course(record: CourseRecord) -> Course:
    return Course(
        id=record.id,
        code=record.code,
        name=record.name,
        credits=record.credits,
        type=record.type,
        faculty_name=record.faculty_name,
        teacher_name=record.teacher_name,
        description=record.description,
        average_rating=record.average_rating,
        review_count=record.review_count,
    )


class SqlCourseCatalog(CourseCatalog):
    """
    Catalog backed by the `courses` table.

    Args:
        session_factory: Callable returning a new Session
        cache: Cache shared with whoever needs to invalidate it
    """

    def __init__(self, session_factory: Callable[[], Session], cache: Optional[CatalogCache] = None):
        self.session_factory = session_factory
        self.cache = cache

    def get_all(self) -> List[Course]:
        if self.cache is not None:
            cached = self.cache.get()
            if cached is not None:
                return cached

        courses = self._load()
        logger.info(f"📚 Loaded {len(courses)} courses from database")

        if self.cache is not None:
            self.cache.put(courses)
        return courses

    def _load(self) -> List[Course]:
        session = self.session_factory()
        try:
            records = session.query(CourseRecord).order_by(CourseRecord.id).all()
            return [record_to_course(record) for record in records]
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load courses: {e}")
            raise CatalogUnavailable(f"Course catalog could not be loaded: {e}") from e
        except ValidationError as e:
            logger.error(f"❌ Malformed course row: {e}")
            raise CatalogUnavailable(f"Course catalog contains a malformed row: {e}") from e
        finally:
            session.close()

