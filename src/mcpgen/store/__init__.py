"""Record stores for API definitions, server configurations and deployments."""

from mcpgen.store.base import ApiDefinitionStore, DeploymentStore, RecordStore, ServerConfigStore
from mcpgen.store.memory import InMemoryRecordStore
from mcpgen.store.sqlite import SqliteRecordStore

__all__ = [
    "ApiDefinitionStore",
    "DeploymentStore",
    "InMemoryRecordStore",
    "RecordStore",
    "ServerConfigStore",
    "SqliteRecordStore",
]
