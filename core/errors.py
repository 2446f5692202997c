class MirrorError(Exception):
    """Base class for every error raised by the mirror."""


class ConfigurationError(MirrorError):
    """Invalid or missing configuration, detected before any network activity."""


class SignerError(MirrorError):
    """The signer could not be created or validated."""


class PublisherNotInitializedError(MirrorError):
    """publish was called before a signer was attached."""


class PublishError(MirrorError):
    """Signing or broadcasting a single article failed."""
