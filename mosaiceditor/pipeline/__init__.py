"""Pipeline module - Composition of filters over selections, and export."""

from mosaiceditor.pipeline.compose import compose, selection_to_region
from mosaiceditor.pipeline.export import (
    ExportPipeline,
    build_export_filename,
    export_image,
)

__all__ = [
    "ExportPipeline",
    "build_export_filename",
    "compose",
    "export_image",
    "selection_to_region",
]
