from prgate_store.base import BaseStore, StoreError

__all__ = ["BaseStore", "StoreError"]
