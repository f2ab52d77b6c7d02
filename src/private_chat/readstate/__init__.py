"""Mark-as-read coordination per thread activation."""

from private_chat.readstate.coordinator import ReadState, ReadStateCoordinator, ThreadActivation

__all__ = ["ReadState", "ReadStateCoordinator", "ThreadActivation"]
