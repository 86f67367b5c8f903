"""Instance-scoped map between internal ids and GitHub resource numbers."""


class ResourceNumberCache:
    """Bidirectional internal id <-> GitHub number map.

    Advisory only: a miss means "not seen yet", never "does not exist". Each
    repository owns one unless a cache is passed in explicitly. Issue and
    milestone numbers overlap, so one cache must only ever hold one kind.
    """

    def __init__(self) -> None:
        self._numbers: dict[str, int] = {}
        self._ids: dict[int, str] = {}
        self._deleted: set[str] = set()

    def populate(self, internal_id: str, number: int) -> None:
        previous = self._numbers.get(internal_id)
        if previous is not None and self._ids.get(previous) == internal_id:
            del self._ids[previous]
        previous_id = self._ids.get(number)
        if previous_id is not None and previous_id != internal_id:
            del self._numbers[previous_id]
        self._numbers[internal_id] = number
        self._ids[number] = internal_id

    def resolve(self, internal_id: str) -> int | None:
        return self._numbers.get(internal_id)

    def reverse(self, number: int) -> str | None:
        return self._ids.get(number)

    def evict(self, internal_id: str) -> None:
        number = self._numbers.pop(internal_id, None)
        if number is not None and self._ids.get(number) == internal_id:
            del self._ids[number]

    def mark_deleted(self, internal_id: str) -> None:
        """Evict the id and remember it as deleted so later lookups skip the scan."""
        self.evict(internal_id)
        self._deleted.add(internal_id)

    def is_deleted(self, internal_id: str) -> bool:
        return internal_id in self._deleted

    def __contains__(self, internal_id: object) -> bool:
        return internal_id in self._numbers

    def __len__(self) -> int:
        return len(self._numbers)
