from abc import ABC, abstractmethod


class IQrRenderer(ABC):
    @abstractmethod
    def render(self, *, token: str) -> str:
        """Render token as a scannable QR code, returned as a PNG data URL"""
        pass
