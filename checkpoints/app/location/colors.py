"""Deterministic marker colors per county/city name."""

from checkpoints.app.models import CheckpointRecord

DEFAULT_COLOR = '#6B7280'

COLOR_PALETTE: tuple[str, ...] = (
    '#DC2626',  # Red
    '#E86C2C',  # Orange
    '#F59E0B',  # Amber
    '#84CC16',  # Lime
    '#22C55E',  # Green
    '#059669',  # Emerald
    '#14B8A6',  # Teal
    '#0891B2',  # Cyan
    '#0EA5E9',  # Sky
    '#2563EB',  # Blue
    '#4F46E5',  # Indigo
    '#7C3AED',  # Violet
    '#9333EA',  # Purple
    '#C026D3',  # Fuchsia
    '#EC4899',  # Pink
    '#F43F5E',  # Rose
    '#BE185D',  # Deep Pink
    '#CA8A04',  # Yellow
    '#65A30D',  # Light Green
    '#0D9488',  # Dark Teal
    '#1D4ED8',  # Dark Blue
    '#6D28D9',  # Dark Purple
    '#DB2777',  # Magenta
    '#EA580C',  # Deep Orange
)


def normalize_name(name: str | None) -> str:
    """Lowercase and trim a location name."""
    return (name or '').strip().lower()


def hash_name(name: str) -> int:
    """Rolling ``hash * 31 + unit`` hash wrapped to a signed 32-bit integer.

    Iterates UTF-16 code units so the result matches the browser and mobile
    clients for every input, including astral-plane characters.
    """
    encoded = name.encode('utf-16-le')
    value = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


class LocationColorAssigner:
    """Maps location names to palette colors, memoizing each name.

    Different names may share a color; the same normalized name always gets
    the same one.
    """

    def __init__(
        self,
        palette: tuple[str, ...] = COLOR_PALETTE,
        memo: dict[str, str] | None = None,
    ) -> None:
        self._palette = palette
        self._memo = memo if memo is not None else {}

    def color_for(self, name: str | None) -> str:
        """Return the color for a county or city name, gray when empty."""
        key = normalize_name(name)
        if not key:
            return DEFAULT_COLOR
        color = self._memo.get(key)
        if color is None:
            color = self._palette[abs(hash_name(key)) % len(self._palette)]
            self._memo[key] = color
        return color

    def color_for_record(self, record: CheckpointRecord) -> str:
        """Color by county so cities in the same county match; city otherwise."""
        if normalize_name(record.county):
            return self.color_for(record.county)
        return self.color_for(record.city)

    def __len__(self) -> int:
        return len(self._memo)
