"""IdentityMap: source-local collection id -> host id in the target project."""

from collections.abc import Iterator

from projdup.domain.shared.error import ConflictError


class IdentityMap:
    """Incrementally built, per-run, per-collection-kind id translation.

    Keys are unique. A missing, empty or unknown source id resolves to None.
    """

    def __init__(self) -> None:
        self._ids: dict[str, str] = {}

    def bind(self, source_id: str, target_id: str) -> None:
        if source_id in self._ids:
            raise ConflictError(
                f"Collection {source_id!r} already mapped to {self._ids[source_id]!r}"
            )
        self._ids[source_id] = target_id

    def resolve(self, source_id: str | None) -> str | None:
        if not source_id:
            return None
        return self._ids.get(source_id)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def items(self) -> list[tuple[str, str]]:
        return list(self._ids.items())

    def __repr__(self) -> str:
        return f"IdentityMap({self._ids!r})"
