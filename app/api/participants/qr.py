import base64
from io import BytesIO

import qrcode


def generate_qr_png(data: str) -> bytes:
    """
    Generate a QR code for the given string and return the PNG bytes.

    :param data: The string to encode in the QR code
    :return: PNG image bytes
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color='#164e63', back_color='white')

    buffered = BytesIO()
    img.save(buffered, format='PNG')
    return buffered.getvalue()


def generate_qr_data_url(data: str) -> str:
    img_base64 = base64.b64encode(generate_qr_png(data)).decode('utf-8')
    return f'data:image/png;base64,{img_base64}'
