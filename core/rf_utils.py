"""
RF utilities for decibel arithmetic, thermal noise and cascade noise figures.

Everything here is a pure function. Unpowered paths are represented by
``-inf`` and flow through the helpers without raising.
"""
import math
from typing import Optional, Sequence, Tuple

import numpy as np

NEG_INF = float('-inf')

# Boltzmann constant expressed as dBm/K/Hz (10*log10(1.380649e-23) + 30)
BOLTZMANN_DBM = -198.6
# Reference temperature for noise figure definitions
T0_KELVIN = 290.0
# kT0 noise density
THERMAL_NOISE_DENSITY_DBM_HZ = -174.0

EARTH_RADIUS_KM = 6378.137
GEO_ALTITUDE_KM = 35786.0


# -----------------------------------------------------
# Decibel conversions
# -----------------------------------------------------

def db_to_linear(value_db: float) -> float:
    if value_db == NEG_INF:
        return 0.0
    return 10.0 ** (value_db / 10.0)


def linear_to_db(value: float) -> float:
    if value <= 0.0:
        return NEG_INF
    return 10.0 * math.log10(value)


def noise_figure_to_temperature(nf_db: float) -> float:
    """Equivalent noise temperature (K) of a stage with noise figure ``nf_db``."""
    return T0_KELVIN * (db_to_linear(nf_db) - 1.0)


# -----------------------------------------------------
# Thermal noise
# -----------------------------------------------------

def thermal_noise_dbm(bandwidth_hz: float, temperature_k: float = T0_KELVIN) -> float:
    """
    kTB noise power.

    Args:
        bandwidth_hz: Noise bandwidth (Hz)
        temperature_k: System noise temperature (K)

    Returns:
        Noise power in dBm, or -inf for a non-positive bandwidth/temperature
    """
    if bandwidth_hz <= 0 or temperature_k <= 0:
        return NEG_INF
    return BOLTZMANN_DBM + 10.0 * math.log10(temperature_k) + 10.0 * math.log10(bandwidth_hz)


def instrument_noise_floor_dbm(bandwidth_hz: float, noise_figure_db: float) -> float:
    """Internal noise of a receiver: -174 dBm/Hz + 10*log10(B) + NF."""
    if bandwidth_hz <= 0:
        return NEG_INF
    return THERMAL_NOISE_DENSITY_DBM_HZ + 10.0 * math.log10(bandwidth_hz) + noise_figure_db


def cascade_noise_figure_db(stages: Sequence[Tuple[float, float]]) -> float:
    """
    Friis cascade of (noise_figure_db, net_gain_db) pairs in chain order.

    F_total = F1 + (F2 - 1) / G1 + (F3 - 1) / (G1 * G2) + ...

    Args:
        stages: Sequence of (noise figure, net gain) in dB, first stage first

    Returns:
        Total noise figure in dB. An empty chain is noiseless (0 dB).
    """
    if not stages:
        return 0.0

    f_total = 1.0
    cumulative_gain = 1.0
    for index, (nf_db, gain_db) in enumerate(stages):
        f_stage = db_to_linear(nf_db)
        if index == 0:
            f_total = f_stage
        else:
            f_total += (f_stage - 1.0) / cumulative_gain
        cumulative_gain *= db_to_linear(gain_db)
        if cumulative_gain == 0.0:
            # Nothing beyond a dead stage can add noise relative to the input
            break

    return linear_to_db(f_total)


# -----------------------------------------------------
# Antenna noise and advisory link metrics
# -----------------------------------------------------

def sky_temperature_k(elevation_deg: float) -> float:
    """
    Clear-sky C-band antenna temperature.
    About 8 K at zenith, growing with the slant path at low elevation.
    """
    secz = 1.0 / max(0.1, math.sin(math.radians(elevation_deg)))
    return 8.0 + 4.0 * (secz - 1.0)


def loss_noise_temperature_k(loss_db: float, physical_k: float = T0_KELVIN) -> float:
    """Noise temperature added by a passive loss at ``physical_k``."""
    return physical_k * (db_to_linear(loss_db) - 1.0)


def free_space_path_loss_db(frequency_hz: float, distance_km: float) -> float:
    if frequency_hz <= 0 or distance_km <= 0:
        return 0.0
    return 32.45 + 20.0 * math.log10(distance_km) + 20.0 * math.log10(frequency_hz / 1e6)


def geo_slant_range_km(elevation_deg: float) -> float:
    """Distance to a geostationary satellite seen at ``elevation_deg``."""
    orbit_km = EARTH_RADIUS_KM + GEO_ALTITUDE_KM
    el = math.radians(max(elevation_deg, 0.0))
    return (math.sqrt(orbit_km ** 2 - (EARTH_RADIUS_KM * math.cos(el)) ** 2)
            - EARTH_RADIUS_KM * math.sin(el))


def atmospheric_loss_db(frequency_hz: float, elevation_deg: float = 45.0) -> float:
    """Clear-sky gaseous absorption, scaled by a slant factor capped at 3x."""
    f_ghz = frequency_hz / 1e9
    if f_ghz < 1:
        zenith = 0.01
    elif f_ghz < 10:
        zenith = 0.02 + (f_ghz - 1) * 0.005
    elif f_ghz < 20:
        zenith = 0.1 + (f_ghz - 10) * 0.02
    else:
        zenith = 0.3 + (f_ghz - 20) * 0.05

    elevation = max(elevation_deg, 1e-3)
    slant = 1.0 / math.sin(math.radians(elevation))
    return zenith * min(slant, 3.0)


def polarization_mismatch_loss_db(tx_pol: Optional[str], rx_pol: Optional[str],
                                  angle_deg: float = 0.0) -> float:
    if not tx_pol or not rx_pol:
        return 0.0
    cross = {('H', 'V'), ('V', 'H'), ('LHCP', 'RHCP'), ('RHCP', 'LHCP')}
    if (tx_pol, rx_pol) in cross:
        return 20.0
    if tx_pol in ('H', 'V') and rx_pol in ('H', 'V'):
        cos_angle = abs(math.cos(math.radians(angle_deg)))
        if cos_angle < 0.1:
            return 20.0
        return -20.0 * math.log10(cos_angle)
    return 0.0


# -----------------------------------------------------
# Angles and spectra
# -----------------------------------------------------

def wrap_azimuth(azimuth_deg: float) -> float:
    return azimuth_deg % 360.0


def angular_difference_deg(a: float, b: float) -> float:
    """Smallest absolute difference between two azimuths."""
    diff = abs(wrap_azimuth(a) - wrap_azimuth(b))
    return min(diff, 360.0 - diff)


def overlap_fraction(center_a: float, width_a: float, center_b: float, width_b: float) -> float:
    """Fraction of carrier A's bandwidth covered by carrier B."""
    if width_a <= 0:
        return 0.0
    low = max(center_a - width_a / 2, center_b - width_b / 2)
    high = min(center_a + width_a / 2, center_b + width_b / 2)
    return max(0.0, high - low) / width_a


def gaussian_profile_db(bin_frequencies: np.ndarray, center_hz: float,
                        bandwidth_hz: float, peak_dbm: float) -> np.ndarray:
    """
    Gaussian carrier shape (sigma = bandwidth / 3) in dBm over ``bin_frequencies``.

    Bins far outside the carrier fall to -inf rather than an arbitrarily
    small number.
    """
    sigma = max(bandwidth_hz / 3.0, 1e-9)
    g = np.exp(-0.5 * ((bin_frequencies - center_hz) / sigma) ** 2)
    with np.errstate(divide='ignore'):
        shape = 20.0 * np.log10(np.maximum(g, 1e-10))
    out = peak_dbm + shape
    out[g < 1e-10] = NEG_INF
    return out
