"""Infrastructure layer: concrete implementations of application ports."""

from famitree.infrastructure.codec import JsonStateCodec
from famitree.infrastructure.csv_backup import export_people_csv, import_people_csv
from famitree.infrastructure.file_persistence import FilePersistence
from famitree.infrastructure.memory_persistence import InMemoryPersistence
from famitree.infrastructure.users import ContextUserProvider, StaticUserProvider

__all__ = [
    "ContextUserProvider",
    "FilePersistence",
    "InMemoryPersistence",
    "JsonStateCodec",
    "StaticUserProvider",
    "export_people_csv",
    "import_people_csv",
]
