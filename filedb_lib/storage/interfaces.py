from typing import Protocol, Any, Iterable, Mapping, runtime_checkable


@runtime_checkable
class StorageProtocol(Protocol):
    """Structural twin of `filedb_lib.storage.base.StorageBackend`.

    Lets the engine accept backends that do not inherit from the ABC
    (KeyError for missing keys, atomic saves).
    """

    def save(self, namespace: str, key: str, record: Mapping[str, Any]) -> None: ...

    def load(self, namespace: str, key: str) -> Any: ...

    def delete(self, namespace: str, key: str) -> None: ...

    def list_keys(self, namespace: str) -> Iterable[str]: ...

    def configure(self, **options) -> None: ...
