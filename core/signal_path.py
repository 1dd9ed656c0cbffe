"""
Signal Path Resolver

Cascaded gain and noise floor at any tap point of the RF front end.

Theory:
-------
Gain to a tap is the sum of (gain - insertion loss) over every stage
traversed from the chain source. An unpowered stage breaks the path: the
result is -inf immediately, not a large finite attenuation.

Noise uses the Friis cascade:

    F = F1 + (F2 - 1) / G1 + (F3 - 1) / (G1 * G2) + ...

so the first active amplifier dominates. The noise floor is referred to the
chain input (antenna temperature on receive, 290 K on transmit):

    N = -198.6 + 10*log10(T_in + 290 * (F - 1)) + 10*log10(B)   [dBm]

At the receive IF tap the analyzer's own noise (-174 + 10*log10(B) + NF)
competes with the external floor after gain. Whichever is larger is what
the instrument shows. The returned flag tells the caller whether gain must
still be added (True) or is already reflected (False).

The resolver owns no equipment state. It reads the front end it was given
on every call and never raises.
"""
import logging
from dataclasses import replace
from typing import List, NamedTuple, Sequence

from core.equipment import RfFrontEnd
from core.rf_models import RfSignal, SignalOrigin, TapPoint
from core.rf_utils import (NEG_INF, T0_KELVIN, cascade_noise_figure_db,
                           instrument_noise_floor_dbm, noise_figure_to_temperature,
                           overlap_fraction, thermal_noise_dbm)

logger = logging.getLogger(__name__)


class NoiseFloor(NamedTuple):
    noise_floor_dbm: float
    should_apply_gain: bool


class TapSignal(NamedTuple):
    """A signal together with its displayed power at one tap."""
    signal: RfSignal
    power_dbm: float


class SignalPathResolver:
    """
    Pure gain and noise computations over a borrowed front end.
    """

    # Analyzer front-end noise figure (dB)
    ANALYZER_NOISE_FIGURE_DB = 0.5

    def __init__(self, front_end: RfFrontEnd, analyzer_noise_figure_db: float = ANALYZER_NOISE_FIGURE_DB):
        self.front_end = front_end
        self.analyzer_noise_figure_db = analyzer_noise_figure_db

    def gain_to(self, tap: TapPoint) -> float:
        """
        Cumulative gain from the chain source to ``tap``.

        Args:
            tap: Tap point to resolve

        Returns:
            Gain in dB, or -inf if any traversed stage passes no signal
        """
        total = 0.0
        for stage in self.front_end.chain_to(tap):
            net = stage.net_gain_db()
            if net == NEG_INF:
                return NEG_INF
            total += net
        return total

    def noise_floor_at(self, tap: TapPoint, bandwidth_hz: float) -> NoiseFloor:
        """
        Noise floor at ``tap`` over ``bandwidth_hz``.

        Args:
            tap: Tap point to resolve
            bandwidth_hz: Noise bandwidth (Hz), normally the RBW

        Returns:
            NoiseFloor(noise_floor_dbm, should_apply_gain)
        """
        external = self._input_referred_noise(tap, bandwidth_hz)

        if tap is not TapPoint.RX_IF:
            return NoiseFloor(external, True)

        internal = instrument_noise_floor_dbm(bandwidth_hz, self.analyzer_noise_figure_db)
        gain = self.gain_to(tap)
        external_with_gain = external + gain if external != NEG_INF and gain != NEG_INF else NEG_INF

        if internal > external_with_gain:
            return NoiseFloor(internal, False)
        return NoiseFloor(external, True)

    def internal_noise_floor(self, bandwidth_hz: float) -> float:
        return instrument_noise_floor_dbm(bandwidth_hz, self.analyzer_noise_figure_db)

    def cascade_noise_figure_to(self, tap: TapPoint) -> float:
        """Friis noise figure of the active stages up to ``tap`` (antenna excluded)."""
        stages = self.front_end.chain_to(tap)
        if tap.is_receive:
            stages = stages[1:]
        return cascade_noise_figure_db(
            [(s.effective_noise_figure_db(), s.net_gain_db()) for s in stages])

    def _input_referred_noise(self, tap: TapPoint, bandwidth_hz: float) -> float:
        stages = self.front_end.chain_to(tap)
        if any(not stage.passes_signal() for stage in stages):
            return NEG_INF

        if tap.is_receive:
            t_in = self.front_end.antenna.noise_temperature_k
        else:
            t_in = T0_KELVIN

        t_e = noise_figure_to_temperature(self.cascade_noise_figure_to(tap))
        return thermal_noise_dbm(bandwidth_hz, t_in + t_e)

    # -----------------------------------------------------
    # Signal routing
    # -----------------------------------------------------

    def frequency_at(self, tap: TapPoint, sig: RfSignal) -> float:
        """
        Carrier frequency observed at ``tap``.

        Received carriers stay in the RF domain until the LNB mixer, which uses
        high side injection (IF = LO - RF). Transmitted carriers leave the modem
        at IF and are up-converted by the BUC (RF = IF + LO).
        """
        if tap is TapPoint.RX_IF:
            return abs(self.front_end.lnb.lo_frequency_hz - sig.frequency_hz)
        if not tap.is_receive and tap >= TapPoint.TX_RF_POST_BUC:
            return sig.frequency_hz + self.front_end.buc.lo_frequency_hz
        return sig.frequency_hz

    def signals_at(self, tap: TapPoint, signals: Sequence[RfSignal]) -> List[TapSignal]:
        """
        Pair every signal routed to the path of ``tap`` with its displayed power.

        Receive taps see satellite and loopback carriers, transmit taps see
        transmitter carriers. Each signal is reported at the frequency observed
        at the tap. Linear carriers arriving in the wrong polarization lose the
        OMT cross-pol isolation once past the OMT. At the receive IF the LNB
        output roll-off and the IF filter bandwidth also apply.
        """
        gain = self.gain_to(tap)
        omt = self.front_end.omt
        rx_pol = omt.effective_rx_polarization(self.front_end.antenna.skew_deg)

        routed = []
        for sig in signals:
            if sig.origin.is_uplink == tap.is_receive:
                continue
            frequency = self.frequency_at(tap, sig)
            if frequency != sig.frequency_hz:
                sig = replace(sig, frequency_hz=frequency)
            if gain == NEG_INF:
                routed.append(TapSignal(sig, NEG_INF))
                continue

            power = sig.power_dbm + gain
            if (tap.is_receive and tap >= TapPoint.RX_RF_POST_OMT
                    and sig.origin is SignalOrigin.SATELLITE
                    and sig.polarization is not None and sig.polarization.is_linear
                    and sig.polarization is not rx_pol):
                power -= omt.cross_pol_isolation_db
                sig = replace(sig, is_degraded=True)
            if tap is TapPoint.RX_IF:
                power -= self.front_end.lnb.if_rolloff_db(frequency, sig.bandwidth_hz)
                power -= self.front_end.if_filter.excess_bandwidth_loss_db(sig.bandwidth_hz)
            routed.append(TapSignal(sig, power))
        return routed


def apply_interference(signals: Sequence[RfSignal]) -> List[RfSignal]:
    """
    Simple frequency-overlap interference between received carriers.

    A carrier with C/I below 10 dB against a 50 % overlapping stronger
    carrier is blocked. Otherwise, C/I below 10 dB at 50 % overlap or below
    15 dB at 25 % overlap marks it degraded.
    """
    result = []
    for i, sig in enumerate(signals):
        blocked = False
        degraded = sig.is_degraded
        for j, other in enumerate(signals):
            if i == j:
                continue
            overlap = overlap_fraction(sig.frequency_hz, sig.bandwidth_hz,
                                       other.frequency_hz, other.bandwidth_hz)
            if overlap <= 0.0:
                continue
            c_to_i = sig.power_dbm - other.power_dbm
            if c_to_i < 10.0 and overlap >= 0.5:
                if c_to_i < 0.0:
                    blocked = True
                    break
                degraded = True
            elif c_to_i < 15.0 and overlap >= 0.25:
                degraded = True

        if blocked:
            logger.debug(f"Signal {sig.signal_id} blocked by overlapping carrier")
            continue
        result.append(replace(sig, is_degraded=degraded) if degraded != sig.is_degraded else sig)
    return result
