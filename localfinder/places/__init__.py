"""
External places provider.

Responsibilities:
- Text search and place details against the Google Places API.
- Driving distance and duration through the Distance Matrix API.
- Straight-line distance as a fallback geo-distance service.
"""
