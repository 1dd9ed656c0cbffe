"""
Simulation Configuration Module

Typed configuration for the ground station, the spectrum analyzer, antenna
tracking and alarm polling. Every recognised option is a dataclass field,
so unknown keys are rejected instead of silently ignored.

There is no module-level instance: the host builds a SimulationConfig and
passes it to the GroundStation that uses it.
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional

from core.errors import InvalidConfigError
from core.rf_models import TapPoint


@dataclass
class AnalyzerConfig:
    """
    Spectrum analyzer hardware limits and power-on defaults.
    """
    # Hardware limits
    min_frequency_hz: float = 5e3
    max_frequency_hz: float = 25.5e9
    min_rbw_hz: float = 1.0
    max_rbw_hz: float = 300e6
    min_reference_level_dbm: float = -150.0
    max_reference_level_dbm: float = 30.0

    # Power-on view
    center_frequency_hz: float = 600e6
    span_hz: float = 100e6
    rbw_hz: Optional[float] = 1e6  # None = auto (follows span)
    reference_level_dbm: float = -40.0
    min_amplitude_dbm: float = -100.0
    max_amplitude_dbm: float = -40.0

    # Sweep
    num_bins: int = 801
    refresh_rate_hz: float = 10.0
    noise_figure_db: float = 0.5
    noise_jitter_db: float = 1.0
    max_noise_jitter_db: float = 2.0
    seed: int = 0

    # Traces and markers
    average_weight: float = 0.2
    peak_threshold_db: float = 3.0
    max_markers: int = 10
    waterfall_depth: int = 200
    auto_tune_min_span_hz: float = 10e3

    # Tap points
    tap_a: TapPoint = TapPoint.TX_IF
    tap_b: TapPoint = TapPoint.RX_IF
    tap_a_enabled: bool = True
    tap_b_enabled: bool = True

    def validate(self) -> None:
        if not 0 < self.min_frequency_hz < self.max_frequency_hz:
            raise InvalidConfigError("Analyzer frequency limits must satisfy 0 < min < max")
        half = self.span_hz / 2
        if self.span_hz <= 0 or self.center_frequency_hz - half < self.min_frequency_hz \
                or self.center_frequency_hz + half > self.max_frequency_hz:
            raise InvalidConfigError("Initial analyzer window outside hardware limits")
        if self.num_bins < 3:
            raise InvalidConfigError("num_bins must be at least 3")
        if self.refresh_rate_hz <= 0:
            raise InvalidConfigError("refresh_rate_hz must be positive")
        if not 0.0 < self.average_weight <= 1.0:
            raise InvalidConfigError("average_weight must be in (0, 1]")
        if self.min_amplitude_dbm >= self.max_amplitude_dbm:
            raise InvalidConfigError("min_amplitude_dbm must be below max_amplitude_dbm")


@dataclass
class TrackingConfig:
    """
    Antenna pointing defaults and auto-track acquisition parameters.
    """
    default_azimuth_deg: float = 0.0
    default_elevation_deg: float = 0.0
    default_skew_deg: float = 0.0
    pointing_tolerance_deg: float = 2.0
    acquisition_threshold_dbm: float = -100.0
    acquisition_window_ms: float = 3000.0
    skew_warning_deg: float = 45.0

    def validate(self) -> None:
        if self.pointing_tolerance_deg <= 0:
            raise InvalidConfigError("pointing_tolerance_deg must be positive")
        if self.acquisition_window_ms <= 0:
            raise InvalidConfigError("acquisition_window_ms must be positive")
        if not 0.0 <= self.default_elevation_deg <= 90.0:
            raise InvalidConfigError("default_elevation_deg must be within [0, 90]")


@dataclass
class AlarmConfig:
    poll_interval_ms: float = 1000.0

    def validate(self) -> None:
        if self.poll_interval_ms <= 0:
            raise InvalidConfigError("poll_interval_ms must be positive")


@dataclass
class SimulationConfig:
    """
    Configuration container for one simulated ground station.
    """
    asset_id: str = "GS-1"
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    alarms: AlarmConfig = field(default_factory=AlarmConfig)

    SECTIONS = ('analyzer', 'tracking', 'alarms')

    def get_section(self, section: str):
        """
        Get one configuration section by name.

        Args:
            section: 'analyzer', 'tracking' or 'alarms'

        Returns:
            The section dataclass
        """
        if section not in self.SECTIONS:
            raise InvalidConfigError(f"Invalid config section: {section}. Use one of {self.SECTIONS}")
        return getattr(self, section)

    def update_settings(self, section: str, settings: Dict[str, Any]) -> None:
        """
        Update settings of one section and re-validate it.

        Args:
            section: Section name
            settings: Keys must be fields of the section

        Raises:
            InvalidConfigError: on an unknown key or an invalid result
        """
        target = self.get_section(section)
        known = {f.name: f for f in fields(target)}
        unknown = set(settings) - set(known)
        if unknown:
            raise InvalidConfigError(f"Unknown {section} settings: {sorted(unknown)}")

        coerced = {key: _coerce(getattr(target, key), value) for key, value in settings.items()}
        previous = asdict(target)
        for key, value in coerced.items():
            setattr(target, key, value)
        try:
            target.validate()
        except InvalidConfigError:
            for key, value in previous.items():
                setattr(target, key, value)
            raise

    def validate(self) -> None:
        for section in self.SECTIONS:
            getattr(self, section).validate()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'asset_id': self.asset_id}
        for section in self.SECTIONS:
            data[section] = {
                key: (value.name if isinstance(value, Enum) else value)
                for key, value in asdict(getattr(self, section)).items()
            }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationConfig':
        config = cls(asset_id=data.get('asset_id', 'GS-1'))
        for section in cls.SECTIONS:
            if section in data:
                config.update_settings(section, data[section])
        return config


def _coerce(current: Any, value: Any) -> Any:
    """Convert persisted enum names back to their enum type."""
    if isinstance(current, TapPoint) and isinstance(value, str):
        try:
            return TapPoint[value]
        except KeyError:
            raise InvalidConfigError(f"Unknown tap point: {value}") from None
    return value
