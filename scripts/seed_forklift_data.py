"""
Seed the local database with the standard forklift inspection items, one
forklift unit and one qualified driver.

Usage:
  python scripts/seed_forklift_data.py

This script is idempotent: questions are matched on their text, units on
unit_number and drivers on badge_number, so running it again changes nothing.
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables first
try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception as e:
    print(f"WARNING: Could not load .env file: {e}")
    print("Continuing with default values...")

from forkcheck.db import SessionLocal, Base, engine
from forkcheck.models.models import ChecklistQuestion, ForkliftUnit, QualifiedDriver
from forkcheck.services.equipment import set_default_unit
from forkcheck.services.questions import next_sort_order


DEFAULT_QUESTIONS = {
    "Visual Inspection": [
        "Forks - no cracks, bends, or wear",
        "Tires - proper inflation, no damage",
        "Mast - no visible damage or leaks",
        "Overhead guard - secure and intact",
        "Data plate - visible and legible",
        "Lights - all working properly",
    ],
    "Fluid Levels": [
        "Engine oil level",
        "Hydraulic fluid level",
        "Coolant level",
        "Brake fluid level",
        "Fuel/battery charge level",
    ],
    "Safety Features": [
        "Horn - working properly",
        "Backup alarm - functioning",
        "Seat belt - operational",
        "Emergency brake - holds",
        "Warning decals - visible",
        "Fire extinguisher - present and charged",
    ],
    "Operational Check": [
        "Steering - smooth operation",
        "Brakes - responsive",
        "Lift/lower functions",
        "Tilt functions",
        "Side shift (if equipped)",
        "No unusual noises or vibrations",
    ],
}


def ensure_question(session, question_text: str, category: str) -> ChecklistQuestion:
    q = session.query(ChecklistQuestion).filter(ChecklistQuestion.question_text == question_text).first()
    if q:
        return q
    sort_order = next_sort_order(session)
    q = ChecklistQuestion(
        question_text=question_text,
        category=category,
        label=f"Q{sort_order}",
        sort_order=sort_order,
        is_active=True,
    )
    session.add(q)
    session.flush()
    return q


def ensure_unit(session, name: str, unit_number: str) -> ForkliftUnit:
    unit = session.query(ForkliftUnit).filter(ForkliftUnit.unit_number == unit_number).first()
    if unit:
        return unit
    unit = ForkliftUnit(name=name, unit_number=unit_number, is_active=True)
    session.add(unit)
    session.flush()
    return unit


def ensure_driver(session, badge_number: str, driver_name: str, trainer: str | None = None) -> QualifiedDriver:
    driver = (
        session.query(QualifiedDriver)
        .filter(QualifiedDriver.badge_number == badge_number, QualifiedDriver.is_active.is_(True))
        .first()
    )
    if driver:
        return driver
    driver = QualifiedDriver(badge_number=badge_number, driver_name=driver_name, trainer=trainer, is_active=True)
    session.add(driver)
    session.flush()
    return driver


def main():
    if os.getenv("DATABASE_URL", "sqlite:///./var/dev.db").startswith("sqlite:///./"):
        os.makedirs("var", exist_ok=True)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        created = 0
        for category, items in DEFAULT_QUESTIONS.items():
            for text in items:
                before = session.query(ChecklistQuestion).count()
                ensure_question(session, text, category)
                created += session.query(ChecklistQuestion).count() - before

        unit = ensure_unit(session, "Warehouse Forklift", "FL-001")
        if not session.query(ForkliftUnit).filter(ForkliftUnit.is_default.is_(True)).first():
            set_default_unit(session, unit.id)

        ensure_driver(session, "1001", "Sample Operator", trainer="Safety Team")

        session.commit()
        print(f"Seed completed: {created} new checklist questions, unit FL-001, badge 1001.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
