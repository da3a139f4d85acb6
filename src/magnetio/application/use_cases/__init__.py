from .stream_resolution import StreamResolutionUseCase

__all__ = ["StreamResolutionUseCase"]
