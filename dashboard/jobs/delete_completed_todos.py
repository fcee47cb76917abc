from dashboard.db.session import SessionLocal
from dashboard.services.todos import delete_completed


def run() -> int:
    db = SessionLocal()
    try:
        return delete_completed(db)
    finally:
        db.close()
