from civicdesk.client.normalize import normalize_building_status, normalize_issue_status, normalize_row
from civicdesk.client.store import HttpRemoteStore, RemoteStore, RemoteStoreError
from civicdesk.client.synchronizer import CollectionSynchronizer, TableConfig
from civicdesk.client.mutations import (
    MutationCaller,
    MutationResult,
    Notice,
    NoticeBoard,
    OptimisticUpdate,
    ReportsApi,
)

__all__ = [
    'normalize_building_status',
    'normalize_issue_status',
    'normalize_row',
    'HttpRemoteStore',
    'RemoteStore',
    'RemoteStoreError',
    'CollectionSynchronizer',
    'TableConfig',
    'MutationCaller',
    'MutationResult',
    'Notice',
    'NoticeBoard',
    'OptimisticUpdate',
    'ReportsApi',
]
