"""Spherical surface area of lat/lon grid cells."""

import numpy as np

# Authalic (equal-area) Earth radius in km
EARTH_RADIUS_KM = 6371.0072


def cell_area(bottom_lat, lon_size, lat_size):
    """Surface area of a lat/lon rectangle on the sphere.

    The area between two parallels is a difference of spherical caps, so a
    cell of width dlon spanning [lat, lat + dlat] covers
    R^2 * dlon_rad * (sin(lat + dlat) - sin(lat)). Broadcasts over arrays.

    Args:
        bottom_lat: Latitude of the cell's southern edge, degrees.
        lon_size: Cell width in degrees of longitude.
        lat_size: Cell height in degrees of latitude.

    Returns:
        Area in km^2 (float or ndarray).
    """
    bottom = np.radians(bottom_lat)
    top = np.radians(np.asarray(bottom_lat) + lat_size)
    return EARTH_RADIUS_KM ** 2 * np.radians(lon_size) * (np.sin(top) - np.sin(bottom))
