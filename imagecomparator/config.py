"""
Configuration constants for Image Comparator.

This module contains all configurable settings including:
- Kernel capacity and thread-group geometry
- Batch size and tolerance presets
- Supported image extensions
"""

import os

# Largest image the comparison kernel accepts on each axis.
# The result buffer is sized MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT and
# MAX_IMAGE_WIDTH is its row stride.
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Thread-group extent (x, y) of the comparison grid
DEFAULT_GROUP_SIZE = (8, 8)

# Number of comparison units processed between yield points
# 0 means a single batch containing every unit
DEFAULT_BATCH_SIZE = 128

# Accepted difference percentage presets (0.0 - 1.0)
TOLERANCE_PRESETS = {
    'exact': 0.0,   # pixel-identical only
    'near': 0.1,    # up to 10% of pixels may differ
    'all': 1.0,     # every compared same-size pair
}
DEFAULT_TOLERANCE = TOLERANCE_PRESETS['exact']

# Ask for confirmation before comparing at least this many images
CONFIRM_IMAGE_COUNT = 4000

# Array backend for the comparison kernel ('cpu' = numpy, 'cuda' = cupy)
DEVICES = ('cpu', 'cuda')
DEFAULT_DEVICE = 'cpu'

# Decoded images kept in memory by FolderImageStore
STORE_CACHE_SIZE = 16

# Image extensions picked up by folder discovery
IMAGE_EXTENSIONS = {
    '.png', '.jpg', '.jpeg', '.gif', '.bmp', '.tga', '.tiff', '.tif',
    '.webp', '.psd', '.ico', '.dds', '.ppm', '.pgm', '.pbm', '.pnm',
    '.heic', '.heif',
}

# Report output
REPORT_FORMATS = ('json', 'csv', 'txt')
DEFAULT_REPORT_FILE = os.path.join(os.getcwd(), 'ImageCompareResult.json')
