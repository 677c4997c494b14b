"""Shared defaults for the forensic transform pipeline."""

# Input conditioning
MAX_IMAGE_DIMENSION = 2048  # Maximum size of either side after conditioning
MAX_PIXELS = 4194304  # ~4MP (2048x2048) ceiling on width * height
MAX_FILE_BYTES = 50 * 1024 * 1024  # Largest image file accepted by the loader
SUPPORTED_SUFFIXES = (".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff")

# Residual extraction
DEFAULT_BLUR_KERNEL_SIZE = 3
DEFAULT_RESIDUAL_GAIN = 35.0  # Visibility gain applied before CLAHE
DEFAULT_CLIP_LIMIT = 20.0
DEFAULT_TILE_GRID = (8, 8)

# Tone mapping
DEFAULT_GAMMA = 1.2
DEFAULT_GAIN = 1.0
DEFAULT_OFFSET = 0.0

# Scheduling
PROCESSING_DEBOUNCE_MS = 150.0  # Quiet interval before a requested pass starts
SETTLE_DELAY_MS = 100.0  # Delay before a coalesced follow-up pass
