"""
Rejection types raised by the control layer.

Numeric code never raises: an unpowered chain is reported as -inf, not as an
error. Only control edits are validated, and a rejected edit leaves the
previous state untouched.
"""

from typing import Optional


class ControlRejected(Exception):
    """Base class for any control edit that was refused."""


class OutOfRangeError(ControlRejected, ValueError):
    """
    A requested value falls outside the valid range.

    Attributes:
        name: Name of the edited quantity (e.g. "center_frequency")
        value: The rejected value
        minimum: Lowest accepted value
        maximum: Highest accepted value
    """

    def __init__(self, name: str, value: float, minimum: float, maximum: float):
        self.name = name
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(f"{name}={value} outside valid range [{minimum}, {maximum}]")

    def to_dict(self) -> dict:
        return {
            'type': 'OutOfRange',
            'name': self.name,
            'value': self.value,
            'min': self.minimum,
            'max': self.maximum,
        }


class UnpoweredEquipmentError(ControlRejected):
    """A control was applied to equipment that is switched off."""

    def __init__(self, equipment: str):
        self.equipment = equipment
        super().__init__(f"{equipment} is not powered")

    def to_dict(self) -> dict:
        return {'type': 'Unpowered', 'equipment': self.equipment}


class UnknownEquipmentError(ControlRejected):
    """A control named equipment that does not exist on this station."""

    def __init__(self, equipment: str):
        self.equipment = equipment
        super().__init__(f"Unknown equipment: {equipment}")

    def to_dict(self) -> dict:
        return {'type': 'UnknownEquipment', 'equipment': self.equipment}


class InvalidConfigError(ValueError):
    """Unknown configuration key or illegal configuration value."""


def rejection_to_dict(error: Optional[ControlRejected]) -> Optional[dict]:
    if error is None:
        return None
    if hasattr(error, 'to_dict'):
        return error.to_dict()
    return {'type': type(error).__name__, 'message': str(error)}
