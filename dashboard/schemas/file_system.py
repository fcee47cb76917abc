from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class FileItem(BaseModel):
    name: str
    type: str
    path: str
    size: Optional[int] = None
    modified_at: datetime


class DirectoryListing(BaseModel):
    path: str
    items: List[FileItem]
    total_files: int
    total_directories: int


class DataDirectoryInfo(BaseModel):
    data_dir: str
    exists: bool
    protected_files: List[str]
    allowed_extensions: List[str]


class DeleteResult(BaseModel):
    path: str
    type: str
    message: str
