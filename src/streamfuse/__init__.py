"""streamfuse: aggregate watchable stream candidates from unreliable upstreams."""

__version__ = "0.1.0"
