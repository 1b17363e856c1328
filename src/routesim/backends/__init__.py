from routesim.backends.base import Backend
from routesim.backends.emu import EmuBackend

__all__ = ["Backend", "EmuBackend"]
