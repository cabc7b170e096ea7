"""System-wide constants for the image redaction editor."""

# Redaction effects
EFFECT_TYPES = {
    "mosaic": "Block-average mosaic filter",
    "blur": "Gaussian convolution blur filter",
}

# Selection shapes
SELECTION_TYPES = {
    "rectangle": "Axis-aligned rectangle",
    "brush": "Circular brush dab",
}

# Editor tools
EDITOR_TOOLS = ["rectangle", "brush"]

# Export encodings, keyed by format name
EXPORT_FORMATS = {
    "png": {"extension": "png", "media_type": "image/png"},
    "jpeg": {"extension": "jpg", "media_type": "image/jpeg"},
}

# Source formats accepted by the loader (Pillow format names)
SUPPORTED_SOURCE_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}

# Supported parameter envelopes (inclusive)
MOSAIC_BLOCK_SIZE_RANGE = (2, 20)
BLUR_RADIUS_RANGE = (1, 15)
BRUSH_SIZE_RANGE = (5, 50)

DEFAULT_MOSAIC_BLOCK_SIZE = 10
DEFAULT_BLUR_RADIUS = 5
DEFAULT_BRUSH_SIZE = 20
DEFAULT_EXPORT_QUALITY = 0.9

# Drags at or below this size (image pixels) are treated as accidental clicks
MIN_SELECTION_SIZE = 5

# Upload ceiling enforced by the loader
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

PIXEL_CHANNELS = 4
