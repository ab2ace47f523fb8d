"""CollectionReconciler - map captured collections onto a target project's collections."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from projdup.domain.shared.service import Service
from projdup.domain.transfer.model.host import Collection
from projdup.domain.transfer.model.identity import IdentityMap
from projdup.domain.transfer.model.report import EntityKind, TransferWarning, WarningKind
from projdup.domain.transfer.model.snapshot import CollectionRecord

logger = logging.getLogger(__name__)

CreateCollection = Callable[[str], Awaitable[str]]


@dataclass
class Reconciliation:
    """Result of reconciling one collection kind."""

    identity: IdentityMap = field(default_factory=IdentityMap)
    created: int = 0
    reused: int = 0
    warnings: list[TransferWarning] = field(default_factory=list)


class CollectionReconciler(Service):
    """Reuses target collections by exact name, creates the rest.

    Matching is case-sensitive and the first target collection with the
    same name wins. Only collections the target held before the run are
    candidates for reuse; each unmatched captured collection gets its own
    create call.
    """

    async def reconcile(
        self,
        source_collections: Sequence[CollectionRecord],
        target_collections: Sequence[Collection | CollectionRecord],
        create: CreateCollection,
        category: EntityKind = EntityKind.MR_COLLECTION,
    ) -> Reconciliation:
        result = Reconciliation()
        known = [(c.name, c.id) for c in target_collections]

        for collection in source_collections:
            if collection.id in result.identity:
                result.warnings.append(
                    TransferWarning(
                        category=category,
                        kind=WarningKind.SKIPPED,
                        item=collection.name,
                        message=f"duplicate collection id {collection.id!r} in snapshot",
                    )
                )
                continue

            existing_id = next((cid for name, cid in known if name == collection.name), None)
            if existing_id is not None:
                logger.debug("Reusing %s %r -> %s", category, collection.name, existing_id)
                result.identity.bind(collection.id, existing_id)
                result.reused += 1
                continue

            try:
                new_id = await create(collection.name)
            except Exception as e:
                logger.warning("Failed to create %s %r: %s", category, collection.name, e)
                result.warnings.append(
                    TransferWarning(
                        category=category,
                        kind=WarningKind.FAILED,
                        item=collection.name,
                        message=str(e) or type(e).__name__,
                    )
                )
                continue

            logger.debug("Created %s %r -> %s", category, collection.name, new_id)
            result.identity.bind(collection.id, new_id)
            result.created += 1

        return result
