"""Image labeling service: composes discovery, OCR, captioning, cache and bulk analysis."""

import logging
from typing import Any

from alttext.ai.chain import CaptionChain, ProviderFactory
from alttext.core.cache import AnalysisCache
from alttext.core.config import Settings, get_config
from alttext.core.credentials import ApiKeys, CredentialStore
from alttext.core.errors import UnknownImageError
from alttext.core.materializer import ImageMaterializer
from alttext.models.entities import ImageAnalysis, ImageRecord, ServiceState
from alttext.ocr.engine import OcrEngine
from alttext.ocr.factory import get_text_recognizer
from alttext.ocr.recognizer import BaseTextRecognizer
from alttext.page.base import BasePage
from alttext.workers.analyzer import ImageAnalyzer
from alttext.workers.base import BaseService
from alttext.workers.bulk import BulkAnalyzer, ProgressCallback
from alttext.workers.scanner import ImageScanner

_log = logging.getLogger(__name__)


class ImageLabelingService(BaseService):
    """
    Facade over the description pipeline for one page.

    start() initializes OCR, loads provider keys, subscribes to credential changes and starts
    watching the page for inserted images; stop() undoes all of it and forgets page state.
    Inserted images are tracked as they arrive, without the eligibility filter.
    """

    def __init__(
        self,
        page: BasePage,
        settings: Settings | None = None,
        credentials: CredentialStore | None = None,
        recognizer: BaseTextRecognizer | None = None,
        provider_factory: ProviderFactory | None = None,
        *,
        service_id: str = "image-labeling",
    ) -> None:
        super().__init__(service_id)
        self.page = page
        self.settings = settings or get_config()
        self.credentials = credentials or CredentialStore.from_settings(self.settings)
        self.scanner = ImageScanner(page, self.settings)
        self.ocr_engine = OcrEngine(
            recognizer or get_text_recognizer("tesseract", self.settings), page
        )
        self.caption_chain = CaptionChain(self.settings, provider_factory)
        self.analyzer = ImageAnalyzer(
            self.ocr_engine,
            ImageMaterializer(page.location, loader=page.loader),
            self.caption_chain,
            AnalysisCache(),
        )
        self.bulk = BulkAnalyzer(self.analyzer, self.settings.bulk_item_delay_seconds)
        self._images: dict[str, ImageRecord] = {}
        self._analyses: dict[str, ImageAnalysis] = {}

    async def start(self, scan: bool = True) -> None:
        await super().start()
        if scan:
            self.scan_page()

    async def _on_start(self) -> None:
        try:
            await self.ocr_engine.initialize()
        except Exception as e:
            # Each analyze() retries initialization and records the failure per image.
            _log.warning("OCR backend unavailable at start: %s", e)
        self.refresh_api_keys()
        self.credentials.subscribe(self._on_credentials_changed)
        self.scanner.start_watching(self._on_new_image)

    async def _on_stop(self) -> None:
        self.bulk.cancel()
        self.credentials.unsubscribe(self._on_credentials_changed)
        self.scanner.stop_watching()
        self._images.clear()
        self._analyses.clear()
        self.analyzer.clear_cache()
        await self.ocr_engine.terminate()

    def _on_credentials_changed(self, keys: ApiKeys) -> None:
        _log.info("Provider credentials changed, refreshing caption chain")
        self.caption_chain.set_api_keys(keys)

    def _on_new_image(self, record: ImageRecord) -> None:
        _log.debug("New image inserted: %s (%s)", record.id, record.src)
        self._images[record.id] = record

    def _begin_processing(self) -> None:
        if self.is_active:
            self._set_state(ServiceState.processing)

    def _finish_processing(self) -> None:
        # stop() may have run while awaiting; an offline service stays offline.
        if self.is_active and not self.bulk.is_running:
            self._set_state(ServiceState.idle)

    def refresh_api_keys(self) -> None:
        self.caption_chain.set_api_keys(self.credentials.get_api_keys())

    def scan_page(self) -> list[ImageRecord]:
        records = self.scanner.scan_page()
        self._images = {r.id: r for r in records}
        return records

    def get_images(self) -> list[ImageRecord]:
        return list(self._images.values())

    def get_image(self, image_id: str) -> ImageRecord:
        record = self._images.get(image_id)
        if record is None:
            raise UnknownImageError(f"Unknown image: {image_id}")
        return record

    def get_analysis(self, image_id: str) -> ImageAnalysis | None:
        return self._analyses.get(image_id)

    async def analyze_image(self, image_id: str) -> ImageAnalysis:
        record = self.get_image(image_id)
        self._begin_processing()
        try:
            analysis = await self.analyzer.analyze_image(record)
        finally:
            self._finish_processing()
        if self.is_active:
            self._analyses[image_id] = analysis
        return analysis

    async def describe_all_images(self, on_progress: ProgressCallback | None = None) -> list[ImageAnalysis]:
        """Bulk-analyze every tracked image that still needs a description."""
        targets = [r for r in self._images.values() if r.needs_description]
        self._begin_processing()
        try:
            results = await self.bulk.analyze_bulk_images(targets, on_progress)
        finally:
            self._finish_processing()
        if self.is_active:
            for analysis in results:
                self._analyses[analysis.image.id] = analysis
        return results

    def cancel_bulk_analysis(self) -> bool:
        return self.bulk.cancel()

    def accept_description(self, image_id: str, alt_text: str) -> ImageRecord:
        """Apply a caption as the image's alt text and recompute whether it still needs one."""
        record = self.get_image(image_id)
        record.alt = alt_text
        if record.element is not None:
            record.element.alt = alt_text
        record.refresh_needs_description()
        _log.info("Accepted description for %s", image_id)
        return record

    async def handle_signal(self, command: str, payload: dict[str, Any] | None = None) -> Any:
        if command == "analyze_one":
            image_id = (payload or {}).get("image_id")
            if not image_id:
                raise ValueError("analyze_one requires an image_id")
            return await self.analyze_image(image_id)
        if command == "analyze_all":
            return await self.describe_all_images()
        if command == "cancel":
            return self.cancel_bulk_analysis()
        return await super().handle_signal(command, payload)

    def get_state(self) -> dict[str, Any]:
        progress = self.bulk.progress
        return {
            "active": self.is_active,
            "state": self._state.value,
            "image_count": len(self._images),
            "needs_description_count": sum(1 for r in self._images.values() if r.needs_description),
            "analysis_count": len(self._analyses),
            "cache_size": self.analyzer.get_cache_size(),
            "bulk_running": self.bulk.is_running,
            "bulk_progress": progress.model_dump(exclude={"results"}) if progress else None,
            "services": self.caption_chain.available_services(),
        }
