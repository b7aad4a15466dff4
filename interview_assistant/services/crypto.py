"""AES-256-GCM helpers for secrets stored in the database.

Ciphertext format is ``iv:encrypted:tag`` with each part base64 encoded.
"""
import base64
import hashlib
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from flask import current_app

IV_LENGTH = 12
AUTH_TAG_LENGTH = 16


def _key(secret=None) -> bytes:
    secret = secret or current_app.config.get('SECRET_KEY')
    if not secret:
        raise RuntimeError('SECRET_KEY is required for token encryption')
    return hashlib.sha256(secret.encode('utf-8')).digest()


def encrypt_token(plaintext: str, secret: str = None) -> str:
    iv = os.urandom(IV_LENGTH)
    # AESGCM appends the tag to the ciphertext
    sealed = AESGCM(_key(secret)).encrypt(iv, plaintext.encode('utf-8'), None)
    encrypted, tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
    return ':'.join(base64.b64encode(part).decode('ascii') for part in (iv, encrypted, tag))


def decrypt_token(ciphertext: str, secret: str = None) -> str:
    parts = (ciphertext or '').split(':')
    if len(parts) != 3 or not all(parts):
        raise ValueError('Invalid encrypted token format')
    iv, encrypted, tag = (base64.b64decode(p) for p in parts)
    return AESGCM(_key(secret)).decrypt(iv, encrypted + tag, None).decode('utf-8')
