import base64
import io

import qrcode
from qrcode.exceptions import DataOverflowError

from src.service.ticket_validation.app.interface.i_qr_renderer import IQrRenderer
from src.service.ticket_validation.domain.validation_errors import QrRenderError


PNG_DATA_URL_PREFIX = 'data:image/png;base64,'


class QrRendererImpl(IQrRenderer):
    """Stateless token -> PNG data URL renderer (qrcode + Pillow)"""

    def __init__(self, *, box_size: int = 10, border: int = 2) -> None:
        self.box_size = box_size
        self.border = border

    def render(self, *, token: str) -> str:
        if not token:
            raise QrRenderError('Cannot render an empty token')

        qr = qrcode.QRCode(version=None, box_size=self.box_size, border=self.border)
        try:
            qr.add_data(token)
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as e:
            raise QrRenderError(f'Token too long for a QR code ({len(token)} chars)') from e

        img = qr.make_image(fill_color='black', back_color='white')
        buf = io.BytesIO()
        img.save(buf, format='PNG')
        return PNG_DATA_URL_PREFIX + base64.b64encode(buf.getvalue()).decode()
