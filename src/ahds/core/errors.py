# ahds/core/errors.py
from __future__ import annotations


class AhdsError(Exception):
    """Base class for errors raised by the harvest decision loop."""


class ConfigurationError(AhdsError, ValueError):
    pass


class PrescriptionNotFoundError(ConfigurationError, KeyError):
    def __init__(self, area: str, name: str):
        self.area = area
        self.name = name
        super().__init__(f"No applied prescription '{name}' in management area '{area}'")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class UnsupportedParameterError(ConfigurationError, NotImplementedError):
    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Unsupported consequent parameter '{parameter}'")


class UnknownAreaError(AhdsError, KeyError):
    def __init__(self, area: str):
        self.area = area
        super().__init__(f"Unknown management area '{area}'")

    def __str__(self) -> str:
        return self.args[0]


class MissingHarvestResultError(AhdsError, KeyError):
    def __init__(self, key: str, agent: str | None = None):
        self.key = key
        self.agent = agent
        who = f" (agent {agent})" if agent else ""
        super().__init__(f"No harvest results under key '{key}'{who}")

    def __str__(self) -> str:
        return self.args[0]


class LandscapeExecutionError(AhdsError, RuntimeError):
    pass
