from __future__ import annotations


class ScaffoldError(RuntimeError):
    pass


class InputError(ScaffoldError):
    """The install request is incomplete or invalid; raised before any write."""


class TemplateError(ScaffoldError):
    """A template tree or bundle fragment is missing or unreadable."""


class MalformedTemplateError(TemplateError):
    """A bundle's JSON config could not be parsed."""


class InstallerError(ScaffoldError):
    pass
