# Mean Earth radius (m). Spherical approximation shared by the haversine
# distance and the tangent-plane projection; keep it in one place.
EARTH_RADIUS_M = 6_371_000.0

LAT_LIMIT_DEG = 90.0
LON_LIMIT_DEG = 180.0
