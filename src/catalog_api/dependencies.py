"""Request dependencies that hand out the process-wide stores created in `create_app`."""
from fastapi import Request

from catalog_api.adapters.records import MongoRecordStore
from catalog_api.adapters.storage import LocalFileStore
from catalog_api.config.settings import Settings


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_file_store(request: Request) -> LocalFileStore:
    return request.app.state.file_store


def get_record_store(request: Request) -> MongoRecordStore:
    return request.app.state.record_store
