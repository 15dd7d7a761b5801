"""
Vault Session Errors.

Every failure carries the name of the operation that raised it
(``read``, ``write``, ``renew``, ...) so a message like
``read: gettoken: missing 'secret_id'`` can be traced back through the layers.

The "missing" errors compare by rendered message, so a freshly built
sentinel matches an error raised deep inside the session::

    try:
        session.read("app/db")
    except MissingKeyError as err:
        assert err == MissingKeyError("app/db")
"""


class VaultError(Exception):
    """Base error for every failure raised by vault_session."""

    def __init__(self, operation: str, reason: object):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")


class VaultSealedError(VaultError):
    """Vault is sealed; the operation was refused without contacting it."""

    def __init__(self, operation: str):
        super().__init__(operation, "vault is currently sealed")


class VaultUnavailableError(VaultError):
    """Vault could not be reached."""


class CredentialError(VaultError):
    """No valid token could be produced by the credential provider."""


class _ComparableError(VaultError):
    """Errors matched by message text instead of identity."""

    def __eq__(self, other):
        if isinstance(other, BaseException):
            return str(self) == str(other)
        return NotImplemented

    def __hash__(self):
        return hash(str(self))


class MissingKeyError(_ComparableError):
    """No secret exists at the given path."""

    def __init__(self, key: str):
        self.key = key
        super().__init__("vault", f"key {key} does not exist")


class MissingFieldError(_ComparableError):
    """The secret exists but the requested field does not."""

    def __init__(self, field: str):
        self.field = field
        super().__init__("vault", f"field {field} does not exist")


class MissingListPathError(_ComparableError):
    """No child keys exist under the given path."""

    def __init__(self, root_path: str, path: str):
        self.root_path = root_path
        self.path = path
        super().__init__("list", f'no keys found for given path "{path}"')
