# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
SGP4/SDP4 propagator.

``create_propagator`` recovers the elements, selects the near-Earth or
deep-space model once, and precomputes every per-satellite constant.
The returned ``Propagator`` maps a UTC Julian day to TEME position and
velocity. Deep-space instances own a mutable resonance integrator, so a
Propagator must not be shared across threads.
"""
from dataclasses import dataclass, field

from satephem.domain.constants import SGP4Constants, TWO_THIRDS
from satephem.domain.deep_space import (
    DeepMeanElements,
    DeepSpaceCoefficients,
    PeriodicCache,
    ResonanceState,
    apply_periodics,
    apply_secular,
    compute_deep_space_coefficients,
)
from satephem.domain.elements import OrbitalElementSet
from satephem.domain.near_earth import (
    MeanState,
    NearEarthCoefficients,
    PositionVelocity,
    assemble_state,
    compute_coefficients,
    secular_update,
)
from satephem.domain.recovery import RecoveredElements, recover_elements

_C = SGP4Constants


@dataclass
class Propagator:
    """Propagator for one satellite; build with ``create_propagator``."""
    elements: OrbitalElementSet
    recovered: RecoveredElements
    coefficients: NearEarthCoefficients
    deep_space: DeepSpaceCoefficients | None = None
    resonance_state: ResonanceState | None = None
    periodic_cache: PeriodicCache = field(default_factory=PeriodicCache)

    @property
    def is_deep_space(self) -> bool:
        return self.deep_space is not None

    @property
    def epoch_jd(self) -> float:
        return self.recovered.epoch_jd

    def propagate_minutes(self, tsince: float) -> PositionVelocity:
        """TEME state ``tsince`` minutes after epoch (negative before)."""
        if self.deep_space is None:
            state = secular_update(self.recovered, self.coefficients, tsince)
            return assemble_state(self.recovered, self.coefficients, state)
        return assemble_state(
            self.recovered, self.coefficients, self._deep_mean_state(tsince),
        )

    def propagate(self, jd: float) -> PositionVelocity:
        """TEME state at a UTC Julian day."""
        return self.propagate_minutes((jd - self.epoch_jd) * _C.MINUTES_PER_DAY)

    def _deep_mean_state(self, tsince: float) -> MeanState:
        rec = self.recovered
        ne = self.coefficients
        ds = self.deep_space

        xmdf = rec.mean_anomaly + ne.xmdot * tsince
        omgadf = rec.arg_perigee + ne.omgdot * tsince
        xnoddf = rec.raan + ne.xnodot * tsince
        tsq = tsince * tsince
        xnode = xnoddf + ne.xnodcf * tsq
        tempa = 1.0 - ne.c1 * tsince
        tempe = rec.bstar * ne.c4 * tsince
        templ = ne.t2cof * tsq

        secular = apply_secular(
            rec, ds, self.resonance_state, xmdf, omgadf, xnode, tsince,
        )
        a = (_C.XKE / secular.mean_motion) ** TWO_THIRDS * tempa * tempa
        perturbed = apply_periodics(
            ds,
            self.periodic_cache,
            DeepMeanElements(
                mean_anomaly=secular.mean_anomaly + rec.mean_motion * templ,
                arg_perigee=secular.arg_perigee,
                raan=secular.raan,
                eccentricity=secular.eccentricity - tempe,
                inclination=secular.inclination,
                mean_motion=secular.mean_motion,
            ),
            tsince,
        )
        return MeanState(
            semi_major_axis=a,
            eccentricity=perturbed.eccentricity,
            mean_longitude=perturbed.mean_anomaly + perturbed.arg_perigee + perturbed.raan,
            arg_perigee=perturbed.arg_perigee,
            raan=perturbed.raan,
            inclination=perturbed.inclination,
        )


def create_propagator(elements: OrbitalElementSet) -> Propagator:
    """
    Build a propagator, choosing SGP4 or SDP4 from the recovered period.

    Raises:
        InvalidEpochError: If the element-set epoch cannot be resolved.
    """
    rec = recover_elements(elements)
    coeffs = compute_coefficients(rec, deep_space=rec.is_deep_space)
    if not rec.is_deep_space:
        return Propagator(elements=elements, recovered=rec, coefficients=coeffs)

    ds = compute_deep_space_coefficients(rec, coeffs)
    return Propagator(
        elements=elements,
        recovered=rec,
        coefficients=coeffs,
        deep_space=ds,
        resonance_state=ResonanceState.at_epoch(ds),
    )


def propagate(elements: OrbitalElementSet, jd: float) -> PositionVelocity:
    """One-shot TEME position (km) and velocity (km/s) at a UTC Julian day."""
    return create_propagator(elements).propagate(jd)
