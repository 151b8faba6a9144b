"""In-memory stand-ins for the enrichment client and the record store."""

from collections import defaultdict

from trip_tracker.models.enrichment import Coordinates, EnrichmentResult
from trip_tracker.services.record_store import RecordStoreError


class FakeEnrichment:
    """Returns canned results keyed by (lat, lng) and records every call."""

    def __init__(self, results=None, default=None):
        self.results = results or {}
        self.default = default or EnrichmentResult()
        self.calls: list[Coordinates] = []
        self.before_return = None  # optional async hook(coordinates)

    async def enrich(self, coordinates: Coordinates) -> EnrichmentResult:
        self.calls.append(coordinates)
        if self.before_return is not None:
            await self.before_return(coordinates)
        return self.results.get((coordinates.latitude, coordinates.longitude), self.default)


class FakeRecordStore:
    """In-memory record store; ids in ``fail_ids`` raise on patch."""

    def __init__(self, fail_ids=()):
        self.records: dict[str, dict] = defaultdict(dict)
        self.calls: list[tuple[str, dict]] = []
        self.fail_ids = set(fail_ids)
        self.before_patch = None  # optional async hook(record_id)

    async def patch_fields(self, record_id, fields):
        self.calls.append((record_id, dict(fields)))
        if self.before_patch is not None:
            await self.before_patch(record_id)
        if record_id in self.fail_ids:
            raise RecordStoreError(f"write rejected for {record_id}")
        self.records[record_id].update(fields)
