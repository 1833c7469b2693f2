'''
@ purpose:

Exceptions raised while rebuilding a log archive. Fatal errors stop the
collection at the stage they occur in, recoverable ones are recorded as
warnings against the member being copied.

'''


class CollectionError(Exception):
    pass


class UnsupportedVersion(CollectionError, ValueError):

    def __init__(self, os_version):
        self.os_version = os_version
        super(UnsupportedVersion, self).__init__(
            "unsupported or unknown macOS version: {0}".format(os_version))


class UnknownLayout(CollectionError, ValueError):

    def __init__(self, name, available):
        self.name = name
        self.available = sorted(available)
        super(UnknownLayout, self).__init__(
            "unknown source layout '{0}', expected one of: {1}".format(name, ', '.join(self.available)))


class BundleCreationFailed(CollectionError):

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super(BundleCreationFailed, self).__init__(
            "could not create log archive at {0}: {1}".format(path, cause))


class ManifestWriteFailed(CollectionError):

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super(ManifestWriteFailed, self).__init__(
            "could not write manifest {0}: {1}".format(path, cause))


class SourceUnavailable(CollectionError):

    def __init__(self, path):
        self.path = path
        super(SourceUnavailable, self).__init__("source not found: {0}".format(path))


class CopyEntryFailed(CollectionError):

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super(CopyEntryFailed, self).__init__("could not copy {0}: {1}".format(path, cause))
