"""
Exception taxonomy for the FNS client.

Validation errors are raised before any chain I/O. Anything that goes
wrong inside a collaborator (RPC provider, signer, preimage service)
surfaces as CollaboratorError.
"""


class FNSError(Exception):
  """Base class for every error raised by this package."""
  pass


class InvalidNameError(FNSError, ValueError):
  """Raised when a name or label fails normalization."""
  pass


class UnsupportedNetworkError(FNSError):
  """Raised when no registry is known for a network and none was given."""
  pass


class ContenthashError(FNSError, ValueError):
  """Base class for content-hash codec failures."""
  pass


class UnsupportedSchemeError(ContenthashError):
  """Raised when a content URI uses a scheme with no registered codec."""
  pass


class MalformedPayloadError(ContenthashError):
  """Raised when a content URI payload cannot be parsed for its scheme."""
  pass


class UnrecognizedEncodingError(ContenthashError):
  """Raised when encoded contenthash bytes start with an unknown codec."""
  pass


class UnknownCoinKeyError(FNSError, KeyError):
  """Raised when a coin key has no registered address codec."""

  def __str__(self):
    # KeyError quotes its argument; keep the plain message
    return str(self.args[0]) if self.args else ''


class CollaboratorError(FNSError):
  """Raised when the RPC provider, signer or preimage service fails."""
  pass
