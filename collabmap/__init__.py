"""
CollabMap Engine Application Package.

Locates a user and maps the directory partners around them:
- Multi-tier location resolution (device, address geocode, IP fallback)
- Haversine distance filtering and ranking
- Regional coordinate validation and repair
- Collaboration graph edges between visible partners
"""

__version__ = "1.0.0"
__author__ = "CollabMap Team"
