"""Curated coordinates for the cities and counties checkpoints are usually held in.

Keys are matched exactly after trimming, so spelling variants seen in the data
("L.A", "San diego", "Solono") are listed as they appear.
"""

DEFAULT_CENTER: tuple[float, float] = (36.7783, -119.4179)

CITY_COORDINATES: dict[str, tuple[float, float]] = {
    'El Centro': (32.792, -115.563),
    'Glendora': (34.136, -117.865),
    'Monterey Park': (34.062, -118.123),
    'Pleasanton': (37.663, -121.875),
    'Union City': (37.596, -122.019),
    'Lincoln': (38.891, -121.293),
    'Oceanside': (33.196, -117.380),
    'San Jacinto': (33.784, -116.958),
    'Greenfield': (36.321, -121.244),
    'Vacaville': (38.357, -121.987),
}

COUNTY_COORDINATES: dict[str, tuple[float, float]] = {
    'Imperial': (32.792, -115.563),
    'L.A': (34.052, -118.243),
    'LA': (34.052, -118.243),
    'Alameda': (37.602, -122.061),
    'Placer County': (38.891, -121.293),
    'San diego': (32.716, -117.163),
    'Riverside': (33.980, -117.375),
    'Monterey': (36.600, -121.894),
    'Solono': (38.357, -121.987),
    'Fresno County': (36.746, -119.772),
}

US_STATE_NAMES: dict[str, str] = {
    'AL': 'Alabama',
    'AK': 'Alaska',
    'AZ': 'Arizona',
    'AR': 'Arkansas',
    'CA': 'California',
    'CO': 'Colorado',
    'CT': 'Connecticut',
    'DE': 'Delaware',
    'DC': 'District of Columbia',
    'FL': 'Florida',
    'GA': 'Georgia',
    'HI': 'Hawaii',
    'ID': 'Idaho',
    'IL': 'Illinois',
    'IN': 'Indiana',
    'IA': 'Iowa',
    'KS': 'Kansas',
    'KY': 'Kentucky',
    'LA': 'Louisiana',
    'ME': 'Maine',
    'MD': 'Maryland',
    'MA': 'Massachusetts',
    'MI': 'Michigan',
    'MN': 'Minnesota',
    'MS': 'Mississippi',
    'MO': 'Missouri',
    'MT': 'Montana',
    'NE': 'Nebraska',
    'NV': 'Nevada',
    'NH': 'New Hampshire',
    'NJ': 'New Jersey',
    'NM': 'New Mexico',
    'NY': 'New York',
    'NC': 'North Carolina',
    'ND': 'North Dakota',
    'OH': 'Ohio',
    'OK': 'Oklahoma',
    'OR': 'Oregon',
    'PA': 'Pennsylvania',
    'RI': 'Rhode Island',
    'SC': 'South Carolina',
    'SD': 'South Dakota',
    'TN': 'Tennessee',
    'TX': 'Texas',
    'UT': 'Utah',
    'VT': 'Vermont',
    'VA': 'Virginia',
    'WA': 'Washington',
    'WV': 'West Virginia',
    'WI': 'Wisconsin',
    'WY': 'Wyoming',
}


def state_name(state: str) -> str:
    """Expand a two-letter state code; other values are returned trimmed."""
    trimmed = state.strip()
    return US_STATE_NAMES.get(trimmed.upper(), trimmed)
