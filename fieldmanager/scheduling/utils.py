from urllib.parse import urlencode

GOOGLE_MAPS_DIRECTIONS_URL = 'https://www.google.com/maps/dir/'


def google_maps_directions_url(location):
    """Deep link that opens turn-by-turn directions to ``location``"""
    location = (location or '').strip()
    if not location:
        return None
    return f"{GOOGLE_MAPS_DIRECTIONS_URL}?{urlencode({'api': 1, 'destination': location})}"
