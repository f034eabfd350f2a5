"""Custom column types."""

import json

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

from invoizo.app.core.encryption import get_encryption_service


class EncryptedJSON(TypeDecorator):
    """JSON document stored as an AES-GCM encrypted, base64 encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return get_encryption_service().encrypt(json.dumps(value, sort_keys=True))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return json.loads(get_encryption_service().decrypt(value))
