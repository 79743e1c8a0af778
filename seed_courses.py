import os
import json
import logging
from typing import Callable, List, Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from db import SessionLocal, init_db
from course_advisor.logic.contracts import Course
from course_advisor.models import CourseRecord

load_dotenv()

logger = logging.getLogger(__name__)

DATA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "courses.json")


def load_courses(path: str = DATA_PATH) -> List[Course]:
    """Read and validate a JSON array of courses (camelCase keys)."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [Course.model_validate(entry) for entry in data]


def seed_courses(
    path: str = DATA_PATH,
    session_factory: Callable[[], Session] = SessionLocal,
    bind=None,
) -> int:
    """
    Insert or update every course in `path`, keyed by id.

    Returns:
        Number of courses written
    """
    courses = load_courses(path)
    init_db(bind)

    db = session_factory()
    try:
        for course in courses:
            db.merge(CourseRecord(
                id=course.id,
                code=course.code,
                name=course.name,
                credits=course.credits,
                type=course.type.value,
                faculty_name=course.faculty_name,
                teacher_name=course.teacher_name,
                description=course.description,
                average_rating=course.average_rating,
                review_count=course.review_count,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    logger.info(f"🌱 Seeded {len(courses)} courses from {path}")
    return len(courses)


def main(path: Optional[str] = None):
    logging.basicConfig(level=logging.INFO)
    seed_courses(path or os.getenv("COURSES_JSON", DATA_PATH))


if __name__ == "__main__":
    main()
