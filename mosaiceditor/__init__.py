"""Image redaction editor: mosaic and blur selected regions of a raster image."""

__version__ = "1.0.0"
