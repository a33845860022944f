"""
OpenImageIO adapter for reading and writing RGBA rasters.

Normalizes whatever the file holds (grey, grey+alpha, RGB, RGBA, extra
channels, any pixel type) into the 8-bit RGBA layout the filters expect.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import OpenImageIO as oiio

from ..core import CHANNELS, Raster

logger = logging.getLogger(__name__)


class OiioAdapter:
    """Thin wrapper for robust OIIO bindings."""

    # OIIO may not be thread-safe across ImageOutput instances
    _oiio_lock = threading.Lock()

    @staticmethod
    def image_size(filepath: str) -> Optional[Tuple[int, int, int]]:
        """(width, height, nchannels) of the first subimage, or None if unreadable."""
        inp = oiio.ImageInput.open(str(filepath))
        if not inp:
            logger.warning("Cannot open %s: %s", filepath, oiio.geterror())
            return None
        try:
            spec = inp.spec()
            return spec.width, spec.height, spec.nchannels
        finally:
            inp.close()

    @staticmethod
    def read_raster(filepath: str) -> Optional[Raster]:
        """
        Read the first subimage of a file as an RGBA uint8 raster.

        Returns None if the file cannot be opened or decoded.
        """
        # Keep straight (unassociated) alpha, matching canvas pixel buffers
        config = oiio.ImageSpec()
        config.attribute("oiio:UnassociatedAlpha", 1)
        inp = oiio.ImageInput.open(str(filepath), config)
        if not inp:
            logger.warning("Cannot open %s: %s", filepath, oiio.geterror())
            return None

        try:
            spec = inp.spec()
            pixels = inp.read_image(oiio.UINT8)
            if pixels is None:
                logger.warning("Cannot read pixels from %s: %s", filepath, inp.geterror())
                return None
        finally:
            inp.close()

        data = OiioAdapter.to_rgba(np.asarray(pixels), spec.height, spec.width)
        logger.debug("Read %s (%dx%d, %d channels)", filepath, spec.width, spec.height, spec.nchannels)
        return Raster(spec.width, spec.height, data)

    @staticmethod
    def to_rgba(pixels: np.ndarray, height: int, width: int) -> np.ndarray:
        """Expand or trim a (H, W, C) uint8 array to (H, W, 4) RGBA."""
        pixels = pixels.reshape((height, width, -1))
        nchannels = pixels.shape[2]
        rgba = np.empty((height, width, CHANNELS), dtype=np.uint8)

        if nchannels == 1:
            rgba[..., :3] = pixels[..., :1]
            rgba[..., 3] = 255
        elif nchannels == 2:
            rgba[..., :3] = pixels[..., :1]
            rgba[..., 3] = pixels[..., 1]
        elif nchannels == 3:
            rgba[..., :3] = pixels
            rgba[..., 3] = 255
        else:
            rgba[...] = pixels[..., :CHANNELS]
        return rgba

    @staticmethod
    def write_raster(filepath: str, raster: Raster) -> None:
        """
        Write a raster as 8-bit RGBA.

        Raises RuntimeError if OIIO cannot create, open or write the file.
        """
        output_path = Path(filepath).resolve()
        if not output_path.parent.exists():
            raise RuntimeError(f"Output directory missing: {output_path.parent}")

        out_spec = oiio.ImageSpec(raster.width, raster.height, CHANNELS, oiio.UINT8)
        out_spec.channelnames = ("R", "G", "B", "A")
        out_spec.alpha_channel = 3
        out_spec.attribute("oiio:UnassociatedAlpha", 1)

        output_path_str = str(output_path).replace("\\", "/")
        with OiioAdapter._oiio_lock:
            out = oiio.ImageOutput.create(output_path_str)
            if not out:
                raise RuntimeError(f"ImageOutput.create failed for {output_path}: {oiio.geterror()}")
            try:
                if not out.open(output_path_str, out_spec):
                    raise RuntimeError(f"Cannot open {output_path} for writing: {out.geterror()}")
                if not out.write_image(raster.data):
                    raise RuntimeError(f"write_image failed for {output_path}: {out.geterror()}")
            finally:
                out.close()

        logger.info("Wrote %s (%dx%d)", output_path, raster.width, raster.height)

    @staticmethod
    def get_oiio_version() -> str:
        """Return OIIO version string."""
        return str(getattr(oiio, "__version__", "unknown"))
