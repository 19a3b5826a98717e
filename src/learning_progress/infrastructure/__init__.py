"""Infrastructure layer for learning progress.

Re-exports the public API surface for convenience::

    from learning_progress.infrastructure import (
        EventBus, ContentCatalog, JsonFileProgressRepository,
        TrackingConfig, StorageConfig,
    )
"""

from learning_progress.infrastructure.catalog import ContentCatalog
from learning_progress.infrastructure.config import (
    StorageConfig,
    TrackingConfig,
    load_config_from_json,
    load_config_from_yaml,
)
from learning_progress.infrastructure.event_bus import EventBus, Subscription
from learning_progress.infrastructure.repository import (
    InMemoryProgressRepository,
    JsonFileProgressRepository,
    ProgressRepository,
    build_repository,
)
from learning_progress.infrastructure.serialization import (
    deserialize,
    from_json,
    from_yaml,
    serialize,
    snapshot_from_dict,
    snapshot_to_dict,
    to_json,
    to_yaml,
)

__all__ = [
    # Event bus
    "EventBus",
    "Subscription",
    # Catalog
    "ContentCatalog",
    # Configuration
    "StorageConfig",
    "TrackingConfig",
    "load_config_from_json",
    "load_config_from_yaml",
    # Persistence
    "ProgressRepository",
    "InMemoryProgressRepository",
    "JsonFileProgressRepository",
    "build_repository",
    # Serialization
    "serialize",
    "deserialize",
    "snapshot_to_dict",
    "snapshot_from_dict",
    "to_json",
    "from_json",
    "to_yaml",
    "from_yaml",
]
