"""In-memory implementation of PersistenceBackend (no disk)."""


class InMemoryPersistence:
    """Keeps the last saved blob. Useful for tests and throwaway sessions."""

    def __init__(self, initial: bytes | None = None) -> None:
        self._data = initial
        self.save_count = 0

    @property
    def data(self) -> bytes | None:
        return self._data

    def load_initial(self) -> bytes | None:
        return self._data

    def save(self, raw: bytes) -> None:
        self._data = bytes(raw)
        self.save_count += 1
