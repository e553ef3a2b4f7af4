"""Shared application settings read from environment variables."""

import os

DATA_DIR: str = os.environ.get('DATA_DIR', '/data')

LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()

# Geocoding provider
NOMINATIM_URL: str = os.environ.get(
    'NOMINATIM_URL', 'https://nominatim.openstreetmap.org/search'
)
GEOCODER_USER_AGENT: str = os.environ.get(
    'GEOCODER_USER_AGENT', 'DUI-Checkpoint-Map/1.0'
)
GEOCODE_TIMEOUT_SECONDS: float = float(os.environ.get('GEOCODE_TIMEOUT_SECONDS', '10'))

# Batch geocoding
GEOCODE_BATCH_SIZE: int = int(os.environ.get('GEOCODE_BATCH_SIZE', '5'))
GEOCODE_BATCH_DELAY_SECONDS: float = float(
    os.environ.get('GEOCODE_BATCH_DELAY_SECONDS', '1.0')
)

DEFAULT_STATE: str = os.environ.get('DEFAULT_STATE', 'CA')
DEFAULT_COUNTRY: str = os.environ.get('DEFAULT_COUNTRY', 'USA')

# Remote deployment used by the command-line renderer
CHECKPOINTS_API_URL: str = os.environ.get(
    'CHECKPOINTS_API_URL', 'https://meehan-law-firm-dui-checkpoints.vercel.app'
)
