"""Vector payload key names and the immutable payload builder.

Every vector entry written by the ingestion pipeline carries a payload map
used for filtering and provenance.  Four keys are reserved and always set
by the pipeline (``dataSource``, ``fileId``, ``fileName``, ``fileSource``);
``fileUrl`` is reserved but optional.  Callers may add their own keys.

:class:`PayloadBuilder` layers caller keys first and reserved keys on top,
so a caller-supplied ``fileId`` can never shadow the generated one.  Each
``with_*`` call returns a new builder; ``build()`` returns a fresh dict.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

import structlog

logger = structlog.get_logger(logger_name=__name__)


class KnowledgePayloadName:
    DATA_SOURCE = "dataSource"
    FILE_ID = "fileId"
    FILE_NAME = "fileName"
    FILE_SOURCE = "fileSource"
    FILE_URL = "fileUrl"

    RESERVED = frozenset({DATA_SOURCE, FILE_ID, FILE_NAME, FILE_SOURCE, FILE_URL})


class VectorDataSource:
    FILE = "file"


@dataclass(frozen=True)
class PayloadBuilder:
    """Immutable builder for vector-entry payloads."""

    extra: tuple[tuple[str, Any], ...] = ()
    reserved: tuple[tuple[str, Any], ...] = ()

    def with_extra(self, values: Mapping[str, Any] | None) -> PayloadBuilder:
        """Return a builder with caller key-value pairs appended."""
        if not values:
            return self
        return replace(self, extra=self.extra + tuple(values.items()))

    def for_file(
        self,
        file_id: str,
        file_name: str,
        file_source: str,
        file_url: str | None = None,
        data_source: str = VectorDataSource.FILE,
    ) -> PayloadBuilder:
        """Return a builder with the reserved provenance keys set."""
        reserved: list[tuple[str, Any]] = [
            (KnowledgePayloadName.DATA_SOURCE, data_source),
            (KnowledgePayloadName.FILE_ID, file_id),
            (KnowledgePayloadName.FILE_NAME, file_name),
            (KnowledgePayloadName.FILE_SOURCE, file_source),
        ]
        if file_url and file_url.strip():
            reserved.append((KnowledgePayloadName.FILE_URL, file_url))
        return replace(self, reserved=tuple(reserved))

    def collisions(self) -> list[str]:
        """Caller keys that a reserved key will override, in caller order."""
        reserved_keys = {k for k, _ in self.reserved} | KnowledgePayloadName.RESERVED
        return list(dict.fromkeys(k for k, _ in self.extra if k in reserved_keys))

    def build(self) -> dict[str, Any]:
        """Materialise the payload: caller keys, then reserved keys on top.

        Caller keys named like a reserved key are dropped even when that
        reserved key is not set (``fileUrl`` without a URL), so provenance
        fields only ever come from the pipeline.
        """
        collided = self.collisions()
        if collided:
            logger.debug("payload_reserved_key_override", keys=collided)

        payload: dict[str, Any] = {
            k: v for k, v in self.extra if k not in KnowledgePayloadName.RESERVED
        }
        payload.update(self.reserved)
        return payload
