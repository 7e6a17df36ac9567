from .stream_search import StreamSearchUseCase

__all__ = ["StreamSearchUseCase"]
