from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.session import get_db
from dashboard.schemas.todo import TodoCreate, TodoResponse, TodoUpdate
from dashboard.services import todos

router = APIRouter(prefix="/api/to_do_list", tags=["to_do_list"], dependencies=[RequireApiKey])


@router.get("", response_model=list[TodoResponse])
def list_todos(db: Session = Depends(get_db)):
    return todos.list_todos(db)


@router.get("/{todo_id}", response_model=TodoResponse)
def get_todo(todo_id: int, db: Session = Depends(get_db)):
    return todos.get_todo(db, todo_id)


@router.post("", response_model=TodoResponse, status_code=201)
def create_todo(body: TodoCreate, db: Session = Depends(get_db)):
    return todos.create_todo(db, body)


@router.put("/{todo_id}", response_model=TodoResponse)
def update_todo(todo_id: int, body: TodoUpdate, db: Session = Depends(get_db)):
    return todos.update_todo(db, todo_id, body)


@router.delete("/{todo_id}", status_code=204)
def delete_todo(todo_id: int, db: Session = Depends(get_db)):
    todos.delete_todo(db, todo_id)
