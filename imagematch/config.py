"""
Configuration constants for imagematch.

This module contains all configurable settings including:
- Supported image extensions
- Default hash algorithms and similarity thresholds
- Cache file locations
"""

import os

# Extensions considered image candidates during enumeration
IMAGE_EXTENSIONS = {
    # Common formats
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp', '.tiff', '.tif',
    # Other formats Pillow can decode
    '.heic', '.heif', '.avif',
    '.ico', '.pbm', '.pgm', '.ppm', '.pnm',
    '.tga', '.jp2', '.j2k', '.pcx', '.sgi',
}

# Folders never descended into (matched as a substring of the path,
# e.g. Windows recycle bins and macOS indexing metadata on external drives)
SKIP_FOLDERS = ('$RECYCLE.BIN', '.Spotlight', '.fseventsd')

# Hash algorithm defaults. The bit length of a fingerprint is hash_size ** 2.
DEFAULT_HASH_SIZE = 8
DEDUPE_ALGORITHM = 'ahash'
SEARCH_ALGORITHM = 'phash'

# Similarity thresholds in percent (100 = bit-identical fingerprints)
DEDUPE_THRESHOLD = 96.0
SEARCH_THRESHOLD = 90.0

# Number of parallel hashing workers. 0 means one per logical CPU.
DEFAULT_WORKERS = 0

# In-flight hashing tasks per worker before the dispatcher stops submitting
MAX_PENDING_PER_WORKER = 4

# Cache file created inside the scanned folder when no path is given
CACHE_FILE_NAME = '.image_hashes.db'

# Default CSV output of the dedupe command
DEDUPE_OUTPUT_FILE = os.path.join('.', 'results.csv')
DEDUPE_CSV_HEADERS = ('filePath1', 'filePath2', 'similarity')
