from .rotator import CredentialRotator

__all__ = ["CredentialRotator"]
