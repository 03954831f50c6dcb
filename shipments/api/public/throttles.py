# shipments/api/public/throttles.py
from rest_framework.throttling import SimpleRateThrottle


class PublicTrackThrottle(SimpleRateThrottle):
    """Batas cek resi publik per alamat IP (rate: REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]["public_track"])."""

    scope = "public_track"

    def get_cache_key(self, request, view):
        return self.cache_format % {"scope": self.scope, "ident": self.get_ident(request)}
