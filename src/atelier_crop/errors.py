"""
Error Base
==========

Root of the package's exception hierarchy.

Concrete errors live beside the code that raises them:
    - DecodeError (raster.decoder)
    - RasterReleasedError (raster.buffer)
    - InvalidRegionError (engine.transform)
"""


class CropError(Exception):
    """Base class for all errors raised by atelier_crop."""
    pass
