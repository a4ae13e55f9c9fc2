"""Domain layer for tideledger."""

_SERVICES = {
    "AccountService": "tideledger.domain.account",
    "EntryService": "tideledger.domain.entry",
    "TemplateService": "tideledger.domain.template",
}

__all__ = list(_SERVICES)


# Import services lazily; they depend on tideledger.database, which itself
# imports the domain entities
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
