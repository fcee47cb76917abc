from fastapi import APIRouter, Query

from dashboard.core.dependencies import RequireApiKey
from dashboard.schemas.file_system import DataDirectoryInfo, DeleteResult, DirectoryListing
from dashboard.services import file_system

router = APIRouter(prefix="/api/internal/files", tags=["files"], dependencies=[RequireApiKey])


@router.get("", response_model=DirectoryListing)
def list_files(path: str = Query("", description="Directory relative to the data directory")):
    return file_system.list_directory(path)


@router.get("/info", response_model=DataDirectoryInfo)
def data_directory_info():
    return file_system.data_directory_info()


@router.delete("", response_model=DeleteResult)
def delete_file(path: str = Query(..., min_length=1, description="File or directory relative to the data directory")):
    return file_system.delete_item(path)
