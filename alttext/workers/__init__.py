"""Workers: discovery, analysis, bulk orchestration and the labeling service facade."""

from alttext.workers.analyzer import ImageAnalyzer
from alttext.workers.bulk import BulkAnalyzer
from alttext.workers.labeling import ImageLabelingService
from alttext.workers.scanner import ImageScanner

__all__ = ["BulkAnalyzer", "ImageAnalyzer", "ImageLabelingService", "ImageScanner"]
