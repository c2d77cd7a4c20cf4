"""Password-protected workbook detection and decryption.

Encrypted OOXML workbooks are wrapped in an OLE2 compound file; legacy
``.xls`` files carry an RC4/XOR ``FILEPASS`` record. ``msoffcrypto-tool``
handles both and hands back the plain workbook bytes.
"""

from __future__ import annotations

import io

import msoffcrypto
from msoffcrypto.exceptions import DecryptionError as _MsoDecryptionError
from msoffcrypto.exceptions import FileFormatError, InvalidKeyError

from .errors import DecryptionError
from .logging_setup import get_logger
from .workbook import sniff_container

_logger = get_logger("statement_ingest.crypto")


def is_encrypted(buffer: bytes) -> bool:
    """True when ``buffer`` is an encrypted Office container.

    Bytes that are not an Office container at all (HTML exports, garbage)
    are reported as not encrypted; the workbook reader rejects them later.
    """

    try:
        return bool(msoffcrypto.OfficeFile(io.BytesIO(buffer)).is_encrypted())
    except (FileFormatError, OSError, ValueError):
        return False


def decrypt(buffer: bytes, password: str) -> bytes:
    """Return the decrypted workbook bytes or raise :class:`DecryptionError`.

    Output that is not a workbook container means the key was wrong even when
    the library did not detect it.
    """

    out = io.BytesIO()
    try:
        office = msoffcrypto.OfficeFile(io.BytesIO(buffer))
        office.load_key(password=password)
        office.decrypt(out)
    except (InvalidKeyError, _MsoDecryptionError, FileFormatError) as e:
        _logger.warning("crypto:decrypt_failed error=%s", e)
        raise DecryptionError() from e
    if sniff_container(out.getvalue()) not in ("xlsx", "xls"):
        _logger.warning("crypto:decrypt_failed error=not_a_workbook")
        raise DecryptionError()
    _logger.debug("crypto:decrypted bytes_in=%d bytes_out=%d", len(buffer), out.tell())
    return out.getvalue()


__all__ = ["decrypt", "is_encrypted"]
