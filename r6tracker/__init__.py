"""
r6tracker
Daily Rainbow Six Siege stats collection, windowed aggregation and scheduled rankings.
"""

__version__ = "1.0.0"

# NOTE:
# Keep "import r6tracker" free of side effects; settings, engines and browsers
# are created by the modules that need them.

__all__ = []
