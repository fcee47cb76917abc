import logging

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from dashboard.core.errors import NotFound
from dashboard.models.todo import Todo
from dashboard.schemas.todo import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)


def list_todos(db: Session) -> list[Todo]:
    query = select(Todo).order_by(Todo.due_date.is_(None), Todo.due_date.asc(), Todo.id.asc())
    return list(db.execute(query).scalars().all())


def get_todo(db: Session, todo_id: int) -> Todo:
    todo = db.get(Todo, todo_id)
    if not todo:
        raise NotFound("To do item not found")
    return todo


def create_todo(db: Session, data: TodoCreate) -> Todo:
    todo = Todo(**data.model_dump())
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return todo


def update_todo(db: Session, todo_id: int, data: TodoUpdate) -> Todo:
    todo = get_todo(db, todo_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(todo, field, value)
    db.commit()
    db.refresh(todo)
    return todo


def delete_todo(db: Session, todo_id: int) -> None:
    todo = get_todo(db, todo_id)
    db.delete(todo)
    db.commit()


def delete_completed(db: Session) -> int:
    result = db.execute(delete(Todo).where(Todo.is_completed.is_(True)))
    db.commit()
    deleted = result.rowcount or 0
    logger.info("Deleted %d completed to do items", deleted)
    return deleted
