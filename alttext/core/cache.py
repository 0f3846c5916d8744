"""In-process memo of image analyses keyed by (source, width, height)."""

from alttext.models.entities import ImageAnalysis, ImageRecord

CacheKey = tuple[str, int, int]


class AnalysisCache:
    """Entries live until clear(); there is no expiry or size bound."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, ImageAnalysis] = {}

    def get(self, record: ImageRecord) -> ImageAnalysis | None:
        return self._entries.get(record.cache_key)

    def put(self, record: ImageRecord, analysis: ImageAnalysis) -> None:
        self._entries[record.cache_key] = analysis

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, record: ImageRecord) -> bool:
        return record.cache_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
