from .opencv_engine import OpenCVDecodeEngine

__all__ = ["OpenCVDecodeEngine"]
