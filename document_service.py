import base64
import mimetypes
from typing import BinaryIO, Dict, Optional, Tuple

from werkzeug.utils import secure_filename

from utils import utcnow_iso

DEFAULT_MIME_TYPE = 'application/octet-stream'


class DocumentService:
    """Handles document content, which is stored inline as a data URL."""

    def __init__(self, chunk_size: int = 4096):
        self.chunk_size = chunk_size

    def _read(self, file_stream: BinaryIO) -> bytes:
        # Read the file in chunks to handle large uploads
        chunks = []
        while True:
            chunk = file_stream.read(self.chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
        return b''.join(chunks)

    def encode(self, file_stream: BinaryIO, mime_type: str) -> str:
        """
        Encode a file's content as a base64 data URL.

        Args:
            file_stream: File-like object containing the file data
            mime_type: MIME type recorded in the URL

        Returns:
            The data URL, e.g. ``data:application/pdf;base64,JVBERi0...``
        """
        payload = base64.b64encode(self._read(file_stream)).decode('ascii')
        return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{payload}"

    def split(self, data_url: str) -> Tuple[str, str]:
        """
        Split a data URL into its MIME type and base64 payload.

        Raises:
            ValueError: when the URL does not have exactly one header and one payload
        """
        parts = (data_url or '').split(',')
        if len(parts) != 2:
            raise ValueError("invalid data URL")
        header, payload = parts
        mime_type = header[len('data:'):].split(';')[0] if header.startswith('data:') else ''
        return mime_type or DEFAULT_MIME_TYPE, payload

    def decode(self, data_url: str) -> Tuple[str, bytes]:
        mime_type, payload = self.split(data_url)
        try:
            return mime_type, base64.b64decode(payload, validate=True)
        except (ValueError, TypeError) as e:
            raise ValueError(f"invalid data URL payload: {e}")

    def build_document(self, file_storage, client_id: int, practice_id: Optional[int] = None) -> Dict:
        """
        Turn an uploaded file into an application-shaped Document.

        Args:
            file_storage: werkzeug FileStorage from the multipart request
            client_id: ID of the owning client
            practice_id: ID of the practice, if the document belongs to one

        Returns:
            Dict ready for add_document()
        """
        name = secure_filename(file_storage.filename or '') or 'documento'
        mime_type = (
            file_storage.mimetype
            or mimetypes.guess_type(name)[0]
            or DEFAULT_MIME_TYPE
        )
        return {
            'clientId': client_id,
            'practiceId': practice_id,
            'name': name,
            'type': mime_type,
            'dataUrl': self.encode(file_storage.stream, mime_type),
            'createdAt': utcnow_iso(),
        }

    def inline_part(self, document: Dict) -> Dict:
        """Model request part carrying the document content inline."""
        mime_type, payload = self.split(document.get('dataUrl'))
        return {
            'inline_data': {
                'mime_type': document.get('type') or mime_type,
                'data': payload,
            }
        }


# Create a singleton instance
document_service = DocumentService()
