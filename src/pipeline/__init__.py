"""Pipeline orchestrators for end-to-end workflows."""

from src.pipeline.extraction_pipeline import EntityExtractionPipeline
from src.pipeline.recognition_pipeline import NamedEntityRecognitionPipeline, build_default_pipeline

__all__ = ["EntityExtractionPipeline", "NamedEntityRecognitionPipeline", "build_default_pipeline"]
