# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Near-Earth (SGP4) drag and oblateness model.

Computes the once-per-satellite secular and drag coefficients, the
secular update of the mean elements, and the tail shared with the
deep-space branch: long-period J3 terms, the Kepler solve, short-period
corrections and assembly of TEME position and velocity.

Reference: Hoots & Roehrich, Spacetrack Report #3 (1980).
"""
import logging
import math
from dataclasses import dataclass

from satephem.domain.constants import SECONDS_PER_DAY, SGP4Constants, TWO_PI, TWO_THIRDS
from satephem.domain.kepler import solve_kepler
from satephem.domain.recovery import RecoveredElements

logger = logging.getLogger(__name__)

_C = SGP4Constants

# Guards against the singular point of the J3 long-period terms at i = 180°.
_SINGULAR_INCLINATION = 1.5e-12
_MIN_ECCENTRICITY = 1.0e-6
_SMALL_ECCENTRICITY = 1.0e-4


@dataclass(frozen=True)
class PositionVelocity:
    """TEME position (km) and velocity (km/s)."""
    position_km: tuple[float, float, float]
    velocity_km_s: tuple[float, float, float]


@dataclass(frozen=True)
class NearEarthCoefficients:
    """Drag and secular-rate constants derived once per satellite.

    The C3/C5/D-terms and the perigee/anomaly drag couplings are zero for
    deep-space satellites, which use the reduced set.
    """
    is_simplified: bool
    eta: float
    c1: float
    c3: float
    c4: float
    c5: float
    d2: float
    d3: float
    d4: float
    t2cof: float
    t3cof: float
    t4cof: float
    t5cof: float
    xmdot: float
    omgdot: float
    xnodot: float
    omgcof: float
    xmcof: float
    xnodcf: float
    xlcof: float
    aycof: float
    delmo: float
    sinmo: float
    x3thm1: float
    x1mth2: float
    x7thm1: float


@dataclass(frozen=True)
class MeanState:
    """Mean elements at a time after secular (and deep-space) updates."""
    semi_major_axis: float
    eccentricity: float
    mean_longitude: float
    arg_perigee: float
    raan: float
    inclination: float


def compute_coefficients(rec: RecoveredElements, deep_space: bool = False) -> NearEarthCoefficients:
    """Initialise the drag model for a recovered element set."""
    aodp = rec.semi_major_axis
    xnodp = rec.mean_motion
    eo = rec.eccentricity
    cosio = rec.cos_i
    sinio = rec.sin_i
    theta2 = rec.theta2
    betao = rec.beta0
    betao2 = rec.beta0_sq
    x3thm1 = 3.0 * theta2 - 1.0
    x1mth2 = 1.0 - theta2

    is_simplified = aodp * (1.0 - eo) < (220.0 / _C.XKMPER + _C.AE)

    # Low perigee: shift the density-function parameter s and q0.
    s4 = _C.S
    qoms24 = _C.QOMS2T
    perigee = (aodp * (1.0 - eo) - _C.AE) * _C.XKMPER
    if perigee < 156.0:
        s4 = perigee - _C.SO
        if perigee <= 98.0:
            s4 = 20.0
        qoms24 = ((_C.QO - s4) * _C.AE / _C.XKMPER) ** 4
        s4 = s4 / _C.XKMPER + _C.AE

    pinvsq = 1.0 / (aodp * aodp * betao2 * betao2)
    tsi = 1.0 / (aodp - s4)
    eta = aodp * eo * tsi
    etasq = eta * eta
    eeta = eo * eta
    psisq = abs(1.0 - etasq)
    coef = qoms24 * tsi ** 4
    coef1 = coef / psisq ** 3.5

    c2 = coef1 * xnodp * (
        aodp * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
        + 0.75 * _C.CK2 * tsi / psisq * x3thm1 * (8.0 + 3.0 * etasq * (8.0 + etasq))
    )
    c1 = rec.bstar * c2
    c4 = 2.0 * xnodp * coef1 * aodp * betao2 * (
        eta * (2.0 + 0.5 * etasq)
        + eo * (0.5 + 2.0 * etasq)
        - 2.0 * _C.CK2 * tsi / (aodp * psisq) * (
            -3.0 * x3thm1 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * rec.arg_perigee)
        )
    )

    theta4 = theta2 * theta2
    temp1 = 3.0 * _C.CK2 * pinvsq * xnodp
    temp2 = temp1 * _C.CK2 * pinvsq
    temp3 = 1.25 * _C.CK4 * pinvsq * pinvsq * xnodp
    xmdot = (xnodp + 0.5 * temp1 * betao * x3thm1
             + 0.0625 * temp2 * betao * (13.0 - 78.0 * theta2 + 137.0 * theta4))
    x1m5th = 1.0 - 5.0 * theta2
    omgdot = (-0.5 * temp1 * x1m5th
              + 0.0625 * temp2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
              + temp3 * (3.0 - 36.0 * theta2 + 49.0 * theta4))
    xhdot1 = -temp1 * cosio
    xnodot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * theta2)
                       + 2.0 * temp3 * (3.0 - 7.0 * theta2)) * cosio
    xnodcf = 3.5 * betao2 * xhdot1 * c1
    t2cof = 1.5 * c1

    denom = 1.0 + cosio
    if abs(denom) < _SINGULAR_INCLINATION:
        denom = _SINGULAR_INCLINATION
    xlcof = 0.125 * _C.A3OVK2 * sinio * (3.0 + 5.0 * cosio) / denom
    aycof = 0.25 * _C.A3OVK2 * sinio
    x7thm1 = 7.0 * theta2 - 1.0

    c3 = c5 = omgcof = xmcof = delmo = sinmo = 0.0
    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not deep_space:
        if eo > _SMALL_ECCENTRICITY:
            c3 = coef * tsi * _C.A3OVK2 * xnodp * _C.AE * sinio / eo
            xmcof = -TWO_THIRDS * coef * rec.bstar * _C.AE / eeta
        c5 = 2.0 * coef1 * aodp * betao2 * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)
        omgcof = rec.bstar * c3 * math.cos(rec.arg_perigee)
        delmo = (1.0 + eta * math.cos(rec.mean_anomaly)) ** 3
        sinmo = math.sin(rec.mean_anomaly)
        if not is_simplified:
            c1sq = c1 * c1
            d2 = 4.0 * aodp * tsi * c1sq
            temp = d2 * tsi * c1 / 3.0
            d3 = (17.0 * aodp + s4) * temp
            d4 = 0.5 * temp * aodp * tsi * (221.0 * aodp + 31.0 * s4) * c1
            t3cof = d2 + 2.0 * c1sq
            t4cof = 0.25 * (3.0 * d3 + c1 * (12.0 * d2 + 10.0 * c1sq))
            t5cof = 0.2 * (3.0 * d4 + 12.0 * c1 * d3 + 6.0 * d2 * d2
                           + 15.0 * c1sq * (2.0 * d2 + c1sq))
        if is_simplified:
            logger.debug("Perigee %.1f km below 220 km: simplified drag model", perigee)

    return NearEarthCoefficients(
        is_simplified=is_simplified,
        eta=eta, c1=c1, c3=c3, c4=c4, c5=c5,
        d2=d2, d3=d3, d4=d4,
        t2cof=t2cof, t3cof=t3cof, t4cof=t4cof, t5cof=t5cof,
        xmdot=xmdot, omgdot=omgdot, xnodot=xnodot,
        omgcof=omgcof, xmcof=xmcof, xnodcf=xnodcf,
        xlcof=xlcof, aycof=aycof,
        delmo=delmo, sinmo=sinmo,
        x3thm1=x3thm1, x1mth2=x1mth2, x7thm1=x7thm1,
    )


def secular_update(
    rec: RecoveredElements, coeffs: NearEarthCoefficients, tsince: float,
) -> MeanState:
    """Secular gravity and atmospheric drag, ``tsince`` in minutes from epoch."""
    xmdf = rec.mean_anomaly + coeffs.xmdot * tsince
    omgadf = rec.arg_perigee + coeffs.omgdot * tsince
    xnoddf = rec.raan + coeffs.xnodot * tsince
    omega = omgadf
    xmp = xmdf
    tsq = tsince * tsince
    xnode = xnoddf + coeffs.xnodcf * tsq
    tempa = 1.0 - coeffs.c1 * tsince
    tempe = rec.bstar * coeffs.c4 * tsince
    templ = coeffs.t2cof * tsq

    if not coeffs.is_simplified:
        delomg = coeffs.omgcof * tsince
        delm = coeffs.xmcof * ((1.0 + coeffs.eta * math.cos(xmdf)) ** 3 - coeffs.delmo)
        temp = delomg + delm
        xmp = xmdf + temp
        omega = omgadf - temp
        tcube = tsq * tsince
        tfour = tsince * tcube
        tempa = tempa - coeffs.d2 * tsq - coeffs.d3 * tcube - coeffs.d4 * tfour
        tempe = tempe + rec.bstar * coeffs.c5 * (math.sin(xmp) - coeffs.sinmo)
        templ = templ + coeffs.t3cof * tcube + tfour * (coeffs.t4cof + tsince * coeffs.t5cof)

    return MeanState(
        semi_major_axis=rec.semi_major_axis * tempa * tempa,
        eccentricity=rec.eccentricity - tempe,
        mean_longitude=xmp + omega + xnode + rec.mean_motion * templ,
        arg_perigee=omega,
        raan=xnode,
        inclination=rec.inclination,
    )


def _actan(sinx: float, cosx: float) -> float:
    angle = math.atan2(sinx, cosx)
    return angle + TWO_PI if angle < 0.0 else angle


def assemble_state(
    rec: RecoveredElements, coeffs: NearEarthCoefficients, state: MeanState,
) -> PositionVelocity:
    """Long-period terms, Kepler solve, short periodics and TEME assembly."""
    a = max(state.semi_major_axis, 1.0e-10)
    if state.eccentricity >= 1.0:
        logger.debug("Eccentricity %.6f reached 1, clamped", state.eccentricity)
    e = min(max(state.eccentricity, _MIN_ECCENTRICITY), 1.0 - _MIN_ECCENTRICITY)
    omega = state.arg_perigee
    xnode = state.raan

    beta = math.sqrt(1.0 - e * e)
    xn = _C.XKE / a ** 1.5

    # Long period periodics
    axn = e * math.cos(omega)
    temp = 1.0 / (a * beta * beta)
    xll = temp * coeffs.xlcof * axn
    aynl = temp * coeffs.aycof
    xlt = state.mean_longitude + xll
    ayn = e * math.sin(omega) + aynl

    capu = math.fmod(xlt - xnode, TWO_PI)
    if capu < 0.0:
        capu += TWO_PI
    epw = solve_kepler(capu, axn, ayn).value

    sinepw = math.sin(epw)
    cosepw = math.cos(epw)
    ecose = axn * cosepw + ayn * sinepw
    esine = axn * sinepw - ayn * cosepw
    elsq = axn * axn + ayn * ayn
    temp = max(1.0 - elsq, _MIN_ECCENTRICITY)
    pl = a * temp
    r = a * (1.0 - ecose)
    temp1 = 1.0 / r
    rdot = _C.XKE * math.sqrt(a) * esine * temp1
    rfdot = _C.XKE * math.sqrt(pl) * temp1
    temp2 = a * temp1
    betal = math.sqrt(temp)
    temp3 = 1.0 / (1.0 + betal)
    cosu = temp2 * (cosepw - axn + ayn * esine * temp3)
    sinu = temp2 * (sinepw - ayn - axn * esine * temp3)
    u = _actan(sinu, cosu)
    sin2u = 2.0 * sinu * cosu
    cos2u = 2.0 * cosu * cosu - 1.0

    # Short period periodics
    temp = 1.0 / pl
    temp1 = _C.CK2 * temp
    temp2 = temp1 * temp
    rk = (r * (1.0 - 1.5 * temp2 * betal * coeffs.x3thm1)
          + 0.5 * temp1 * coeffs.x1mth2 * cos2u)
    uk = u - 0.25 * temp2 * coeffs.x7thm1 * sin2u
    xnodek = xnode + 1.5 * temp2 * rec.cos_i * sin2u
    xinck = state.inclination + 1.5 * temp2 * rec.cos_i * rec.sin_i * cos2u
    rdotk = rdot - xn * temp1 * coeffs.x1mth2 * sin2u
    rfdotk = rfdot + xn * temp1 * (coeffs.x1mth2 * cos2u + 1.5 * coeffs.x3thm1)

    # Orientation vectors
    sinuk = math.sin(uk)
    cosuk = math.cos(uk)
    sinik = math.sin(xinck)
    cosik = math.cos(xinck)
    sinnok = math.sin(xnodek)
    cosnok = math.cos(xnodek)
    xmx = -sinnok * cosik
    xmy = cosnok * cosik
    ux = xmx * sinuk + cosnok * cosuk
    uy = xmy * sinuk + sinnok * cosuk
    uz = sinik * sinuk
    vx = xmx * cosuk - cosnok * sinuk
    vy = xmy * cosuk - sinnok * sinuk
    vz = sinik * cosuk

    km = _C.XKMPER / _C.AE
    km_s = km * _C.MINUTES_PER_DAY / SECONDS_PER_DAY
    return PositionVelocity(
        position_km=(rk * ux * km, rk * uy * km, rk * uz * km),
        velocity_km_s=(
            (rdotk * ux + rfdotk * vx) * km_s,
            (rdotk * uy + rfdotk * vy) * km_s,
            (rdotk * uz + rfdotk * vz) * km_s,
        ),
    )
