from world3.streaming.server import StreamServer, serve
from world3.streaming.session import SessionState, SimulationSession

__all__ = ["SessionState", "SimulationSession", "StreamServer", "serve"]
