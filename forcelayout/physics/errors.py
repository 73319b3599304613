from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised synchronously by the call that introduced an invalid graph or setting.

    The simulation is left exactly as it was before the failing call.
    """


class InvalidConfigError(ConfigurationError):
    pass


class DuplicateNodeError(ConfigurationError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"duplicate node id {node_id!r}")
        self.node_id = node_id


class UnknownNodeError(ConfigurationError, KeyError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"unknown node id {node_id!r}")
        self.node_id = node_id

    def __str__(self) -> str:
        return self.args[0]


class DanglingLinkError(ConfigurationError):
    def __init__(self, source: str, target: str, missing: str) -> None:
        super().__init__(f"link {source!r} -> {target!r} references unknown node {missing!r}")
        self.source = source
        self.target = target
        self.missing = missing


class InvalidLinkError(ConfigurationError):
    pass


class NodeNotPinnedError(ConfigurationError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"node {node_id!r} is not pinned")
        self.node_id = node_id
