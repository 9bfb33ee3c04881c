"""Live word cloud of a stream of short text messages."""
from streamcloud.config import CloudConfig
from streamcloud.controller.session import CloudSession, RenderSnapshot, RenderedWord

__all__ = ["CloudConfig", "CloudSession", "RenderSnapshot", "RenderedWord"]
