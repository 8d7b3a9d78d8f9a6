"""Reasons a command can fail to resolve into a domain operation."""


class DispatchError(Exception):
    code = "dispatch_error"


class EntityMissing(DispatchError):
    """The intent needs an entity the classifier could not extract."""

    code = "entity_missing"

    def __init__(self, intent: str, missing: list[str]):
        super().__init__(f"{intent} is missing {', '.join(missing)}")
        self.intent = intent
        self.missing = missing


class NoMatchFound(DispatchError):
    """Fuzzy lookup found no stored task/goal containing the spoken title."""

    code = "no_match_found"

    def __init__(self, kind: str, query: str):
        super().__init__(f"No {kind} matching {query!r}")
        self.kind = kind
        self.query = query


class StoreUnavailable(DispatchError):
    """A store call raised; the original exception is kept as __cause__."""

    code = "store_unavailable"
