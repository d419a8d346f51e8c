from .maintenance_sync import (
    sync_instance,
    sync_all_instances
)

__all__ = [
    'sync_instance',
    'sync_all_instances'
]
