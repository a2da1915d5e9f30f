"""
Pipeline errors.

Only the I/O boundaries fail: decoding input bytes, acquiring a pixel
surface and encoding the result. Detection and inpainting never raise.
"""


class StampRemoverError(Exception):
    """Base class for stamp remover failures."""


class DecodeError(StampRemoverError):
    """Input bytes are malformed or in an unsupported format."""


class SurfaceUnavailableError(StampRemoverError):
    """A pixel surface of the requested size could not be allocated."""


class EncodeError(StampRemoverError):
    """The pixel buffer could not be serialized."""
