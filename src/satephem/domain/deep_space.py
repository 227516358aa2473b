# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Deep-space (SDP4) lunar-solar perturbations and geopotential resonance.

Satellites with periods of 225 minutes or more feel the Sun and Moon and,
near 12-hour and 24-hour periods, tesseral resonances of the geopotential.
This module computes the once-per-satellite amplitudes, the secular
lunar-solar rates with the resonance integrator, and the long-period
lunar-solar periodics.

The integrator is a small state machine (``ResonanceState``): it steps
±720 minutes with a second-order Taylor update and restarts at epoch
whenever the requested time changes sign or lies closer to epoch than
the integrator.

Reference: Hoots & Roehrich, Spacetrack Report #3 (1980), DEEP.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum

from satephem.domain.near_earth import NearEarthCoefficients
from satephem.domain.recovery import RecoveredElements
from satephem.domain.time_systems import gmst_rad, normalize_radians

logger = logging.getLogger(__name__)

# Solar perturbation constants
ZNS = 1.19459e-5
C1SS = 2.9864797e-6
ZES = 0.01675
ZCOSIS = 0.91744867
ZSINIS = 0.39785416
ZSINGS = -0.98088458
ZCOSGS = 0.1945905

# Lunar perturbation constants
ZNL = 1.5835218e-4
C1L = 4.7968065e-7
ZEL = 0.05490

# Geopotential resonance coefficients
Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898
ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9
THDT = 4.3752691e-3             # Earth rotation rate, rad/min

# Synchronous resonance phase angles
FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087

# Mean-motion bands (rad/min) for resonance classification
SYNCHRONOUS_MIN_MOTION = 0.0034906585
SYNCHRONOUS_MAX_MOTION = 0.0052359877
HALF_DAY_MIN_MOTION = 8.26e-3
HALF_DAY_MAX_MOTION = 9.24e-3
HALF_DAY_MIN_ECCENTRICITY = 0.5

INTEGRATION_STEP = 720.0        # minutes
INTEGRATION_STEP2 = 259200.0    # 0.5 * step²
PERIODIC_REFRESH_MINUTES = 30.0
LYDDANE_INCLINATION = 0.2       # rad
_SMALL_INCLINATION = 5.2359877e-2

_JD_1950 = 2433281.5            # 1950 January 0.0


class Resonance(Enum):
    NONE = "none"
    HALF_DAY = "12h"
    SYNCHRONOUS = "synchronous"


class IntegratorPhase(Enum):
    RESET = "reset"
    STEPPING = "stepping"


def _actan(sinx: float, cosx: float) -> float:
    return normalize_radians(math.atan2(sinx, cosx))


@dataclass(frozen=True)
class _PeriodicAmplitudes:
    """Long-period amplitudes of one perturbing body (f2/f3/sin zf coefficients)."""
    e2: float
    e3: float
    i2: float
    i3: float
    l2: float
    l3: float
    l4: float
    gh2: float
    gh3: float
    gh4: float
    h2: float
    h3: float


@dataclass(frozen=True)
class _BodyTerms:
    se: float
    si: float
    sl: float
    sgh: float
    sh: float
    amplitudes: _PeriodicAmplitudes


def _body_terms(
    zcosg: float, zsing: float, zcosi: float, zsini: float,
    zcosh: float, zsinh: float, cc: float, zn: float, ze: float,
    rec: RecoveredElements,
) -> _BodyTerms:
    """Secular rates and periodic amplitudes from one perturbing body."""
    cosiq = rec.cos_i
    siniq = rec.sin_i
    eqsq = rec.eccentricity ** 2
    sinomo = math.sin(rec.arg_perigee)
    cosomo = math.cos(rec.arg_perigee)
    xnoi = 1.0 / rec.mean_motion

    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = cosiq * a7 + siniq * a8
    a4 = cosiq * a9 + siniq * a10
    a5 = -siniq * a7 + cosiq * a8
    a6 = -siniq * a9 + cosiq * a10

    x1 = a1 * cosomo + a2 * sinomo
    x2 = a3 * cosomo + a4 * sinomo
    x3 = -a1 * sinomo + a2 * cosomo
    x4 = -a3 * sinomo + a4 * cosomo
    x5 = a5 * sinomo
    x6 = a6 * sinomo
    x7 = a5 * cosomo
    x8 = a6 * cosomo

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * eqsq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * eqsq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * eqsq
    z11 = -6.0 * a1 * a5 + eqsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = (-6.0 * (a1 * a6 + a3 * a5)
           + eqsq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)))
    z13 = -6.0 * a3 * a6 + eqsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + eqsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = (6.0 * (a4 * a5 + a2 * a6)
           + eqsq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)))
    z23 = 6.0 * a4 * a6 + eqsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    z1 = z1 + z1 + rec.beta0_sq * z31
    z2 = z2 + z2 + rec.beta0_sq * z32
    z3 = z3 + z3 + rec.beta0_sq * z33

    s3 = cc * xnoi
    s2 = -0.5 * s3 / rec.beta0
    s4 = s3 * rec.beta0
    s1 = -15.0 * rec.eccentricity * s4
    s5 = x1 * x3 + x2 * x4
    s6 = x2 * x3 + x1 * x4
    s7 = x2 * x4 - x1 * x3

    se = s1 * zn * s5
    si = s2 * zn * (z11 + z13)
    sl = -zn * s3 * (z1 + z3 - 14.0 - 6.0 * eqsq)
    sgh = s4 * zn * (z31 + z33 - 6.0)
    sh = -zn * s2 * (z21 + z23)
    if rec.inclination < _SMALL_INCLINATION:
        sh = 0.0

    return _BodyTerms(
        se=se, si=si, sl=sl, sgh=sgh, sh=sh,
        amplitudes=_PeriodicAmplitudes(
            e2=2.0 * s1 * s6,
            e3=2.0 * s1 * s7,
            i2=2.0 * s2 * z12,
            i3=2.0 * s2 * (z13 - z11),
            l2=-2.0 * s3 * z2,
            l3=-2.0 * s3 * (z3 - z1),
            l4=-2.0 * s3 * (-21.0 - 9.0 * eqsq) * ze,
            gh2=2.0 * s4 * z32,
            gh3=2.0 * s4 * (z33 - z31),
            gh4=-18.0 * s4 * ze,
            h2=-2.0 * s2 * z22,
            h3=-2.0 * s2 * (z23 - z21),
        ),
    )


@dataclass(frozen=True)
class DeepSpaceCoefficients:
    """Per-satellite lunar-solar and resonance constants."""
    gmst_epoch: float
    epoch_inclination: float
    sin_iq: float
    cos_iq: float
    zmos: float
    zmol: float
    solar: _PeriodicAmplitudes
    lunar: _PeriodicAmplitudes
    sse: float
    ssi: float
    ssl: float
    ssg: float
    ssh: float
    resonance: Resonance
    mean_motion: float          # xnq, rad/min
    omegaq: float
    omgdot: float
    xlamo: float = 0.0
    xfact: float = 0.0
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0
    d2201: float = 0.0
    d2211: float = 0.0
    d3210: float = 0.0
    d3222: float = 0.0
    d4410: float = 0.0
    d4422: float = 0.0
    d5220: float = 0.0
    d5232: float = 0.0
    d5421: float = 0.0
    d5433: float = 0.0


def classify_resonance(mean_motion: float, eccentricity: float) -> Resonance:
    """Resonance class from recovered mean motion (rad/min) and eccentricity."""
    if SYNCHRONOUS_MIN_MOTION < mean_motion < SYNCHRONOUS_MAX_MOTION:
        return Resonance.SYNCHRONOUS
    if (HALF_DAY_MIN_MOTION <= mean_motion <= HALF_DAY_MAX_MOTION
            and eccentricity >= HALF_DAY_MIN_ECCENTRICITY):
        return Resonance.HALF_DAY
    return Resonance.NONE


def _half_day_terms(rec: RecoveredElements) -> dict:
    """Tesseral resonance coefficients for 12-hour, high-eccentricity orbits."""
    eq = rec.eccentricity
    eqsq = eq * eq
    eoc = eq * eqsq
    cosiq = rec.cos_i
    siniq = rec.sin_i
    cosq2 = rec.theta2

    g201 = -0.306 - (eq - 0.64) * 0.440
    if eq <= 0.65:
        g211 = 3.616 - 13.247 * eq + 16.290 * eqsq
        g310 = -19.302 + 117.390 * eq - 228.419 * eqsq + 156.591 * eoc
        g322 = -18.9068 + 109.7927 * eq - 214.6334 * eqsq + 146.5816 * eoc
        g410 = -41.122 + 242.694 * eq - 471.094 * eqsq + 313.953 * eoc
        g422 = -146.407 + 841.880 * eq - 1629.014 * eqsq + 1083.435 * eoc
        g520 = -532.114 + 3017.977 * eq - 5740.0 * eqsq + 3708.276 * eoc
    else:
        g211 = -72.099 + 331.819 * eq - 508.738 * eqsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * eq - 2415.925 * eqsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * eq - 2366.899 * eqsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * eq - 7193.992 * eqsq + 3651.957 * eoc
        g422 = -3581.69 + 16178.11 * eq - 24462.77 * eqsq + 12422.52 * eoc
        if eq <= 0.715:
            g520 = 1464.74 - 4664.75 * eq + 3763.64 * eqsq
        else:
            g520 = -5149.66 + 29936.92 * eq - 54087.36 * eqsq + 31324.56 * eoc

    if eq < 0.7:
        g533 = -919.2277 + 4988.61 * eq - 9064.77 * eqsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * eq - 8491.4146 * eqsq + 5337.524 * eoc
        g532 = -853.666 + 4690.25 * eq - 8624.77 * eqsq + 5341.4 * eoc
    else:
        g533 = -37995.78 + 161616.52 * eq - 229838.2 * eqsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * eq - 309468.16 * eqsq + 146349.42 * eoc
        g532 = -40023.88 + 170470.89 * eq - 242699.48 * eqsq + 115605.82 * eoc

    sini2 = siniq * siniq
    f220 = 0.75 * (1.0 + 2.0 * cosiq + cosq2)
    f221 = 1.5 * sini2
    f321 = 1.875 * siniq * (1.0 - 2.0 * cosiq - 3.0 * cosq2)
    f322 = -1.875 * siniq * (1.0 + 2.0 * cosiq - 3.0 * cosq2)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * siniq * (
        sini2 * (1.0 - 2.0 * cosiq - 5.0 * cosq2)
        + 0.33333333 * (-2.0 + 4.0 * cosiq + 6.0 * cosq2)
    )
    f523 = siniq * (
        4.92187512 * sini2 * (-2.0 - 4.0 * cosiq + 10.0 * cosq2)
        + 6.56250012 * (1.0 + 2.0 * cosiq - 3.0 * cosq2)
    )
    f542 = 29.53125 * siniq * (
        2.0 - 8.0 * cosiq + cosq2 * (-12.0 + 8.0 * cosiq + 10.0 * cosq2)
    )
    f543 = 29.53125 * siniq * (
        -2.0 - 8.0 * cosiq + cosq2 * (12.0 + 8.0 * cosiq - 10.0 * cosq2)
    )

    aqnv = 1.0 / rec.semi_major_axis
    temp1 = 3.0 * rec.mean_motion ** 2 * aqnv * aqnv
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aqnv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533

    return dict(
        d2201=d2201, d2211=d2211, d3210=d3210, d3222=d3222,
        d4410=d4410, d4422=d4422, d5220=d5220, d5232=d5232,
        d5421=d5421, d5433=d5433,
    )


def _synchronous_terms(rec: RecoveredElements) -> dict:
    """Resonance coefficients for geosynchronous (24-hour) orbits."""
    eqsq = rec.eccentricity ** 2
    cosiq = rec.cos_i
    siniq = rec.sin_i
    g200 = 1.0 + eqsq * (-2.5 + 0.8125 * eqsq)
    g310 = 1.0 + 2.0 * eqsq
    g300 = 1.0 + eqsq * (-6.0 + 6.60937 * eqsq)
    f220 = 0.75 * (1.0 + cosiq) * (1.0 + cosiq)
    f311 = 0.9375 * siniq * siniq * (1.0 + 3.0 * cosiq) - 0.75 * (1.0 + cosiq)
    f330 = 1.875 * (1.0 + cosiq) ** 3
    aqnv = 1.0 / rec.semi_major_axis
    del1 = 3.0 * rec.mean_motion ** 2 * aqnv * aqnv
    del2 = 2.0 * del1 * f220 * g200 * Q22
    del3 = 3.0 * del1 * f330 * g300 * Q33 * aqnv
    del1 = del1 * f311 * g310 * Q31 * aqnv
    return dict(del1=del1, del2=del2, del3=del3)


def compute_deep_space_coefficients(
    rec: RecoveredElements, coeffs: NearEarthCoefficients,
) -> DeepSpaceCoefficients:
    """Lunar-solar amplitudes and resonance setup at epoch."""
    thgr = gmst_rad(rec.epoch_jd)
    sinq = math.sin(rec.raan)
    cosq = math.cos(rec.raan)
    siniq = rec.sin_i
    cosiq = rec.cos_i

    # Lunar orbit orientation, referred to 1900 January 0.5.
    day = rec.epoch_jd - _JD_1950 + 18261.5
    xnodce = 4.5236020 - 9.2422029e-4 * day
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    c = 4.7199672 + 0.22997150 * day
    gam = 5.8351514 + 0.0019443680 * day
    zmol = normalize_radians(c - gam)
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = _actan(zx, zy) + gam - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)
    zmos = normalize_radians(6.2565837 + 0.017201977 * day)

    solar = _body_terms(
        ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cosq, sinq, C1SS, ZNS, ZES, rec,
    )
    lunar = _body_terms(
        zcosgl, zsingl, zcosil, zsinil,
        zcoshl * cosq + zsinhl * sinq,
        sinq * zcoshl - cosq * zsinhl,
        C1L, ZNL, ZEL, rec,
    )

    sse = solar.se + lunar.se
    ssi = solar.si + lunar.si
    ssl = solar.sl + lunar.sl
    ssg = solar.sgh + lunar.sgh
    ssh = 0.0
    if siniq != 0.0:
        ssh = (solar.sh + lunar.sh) / siniq
        ssg -= cosiq / siniq * (solar.sh + lunar.sh)

    resonance = classify_resonance(rec.mean_motion, rec.eccentricity)
    extra: dict = {}
    if resonance is Resonance.HALF_DAY:
        extra = _half_day_terms(rec)
        xlamo = rec.mean_anomaly + 2.0 * rec.raan - 2.0 * thgr
        bfact = coeffs.xmdot + 2.0 * coeffs.xnodot - 2.0 * THDT + ssl + 2.0 * ssh
        extra.update(xlamo=xlamo, xfact=bfact - rec.mean_motion)
    elif resonance is Resonance.SYNCHRONOUS:
        extra = _synchronous_terms(rec)
        xlamo = rec.mean_anomaly + rec.raan + rec.arg_perigee - thgr
        bfact = (coeffs.xmdot + coeffs.omgdot + coeffs.xnodot - THDT
                 + ssl + ssg + ssh)
        extra.update(xlamo=xlamo, xfact=bfact - rec.mean_motion)

    logger.debug("Deep-space resonance: %s", resonance.value)

    return DeepSpaceCoefficients(
        gmst_epoch=thgr,
        epoch_inclination=rec.inclination,
        sin_iq=siniq,
        cos_iq=cosiq,
        zmos=zmos,
        zmol=zmol,
        solar=solar.amplitudes,
        lunar=lunar.amplitudes,
        sse=sse, ssi=ssi, ssl=ssl, ssg=ssg, ssh=ssh,
        resonance=resonance,
        mean_motion=rec.mean_motion,
        omegaq=rec.arg_perigee,
        omgdot=coeffs.omgdot,
        **extra,
    )


@dataclass
class ResonanceState:
    """Mutable resonance integrator: time and the integrated λ and n."""
    phase: IntegratorPhase = IntegratorPhase.RESET
    atime: float = 0.0
    xli: float = 0.0
    xni: float = 0.0
    last_requested_time: float | None = None

    @classmethod
    def at_epoch(cls, ds: DeepSpaceCoefficients) -> "ResonanceState":
        state = cls()
        state.reset(ds)
        return state

    def reset(self, ds: DeepSpaceCoefficients) -> None:
        """Return the integrator to epoch."""
        self.phase = IntegratorPhase.RESET
        self.atime = 0.0
        self.xli = ds.xlamo
        self.xni = ds.mean_motion

    def derivatives(self, ds: DeepSpaceCoefficients) -> tuple[float, float, float]:
        """(ṅ, n̈, λ̇) at the current integrator position."""
        xli = self.xli
        if ds.resonance is Resonance.SYNCHRONOUS:
            xndot = (ds.del1 * math.sin(xli - FASX2)
                     + ds.del2 * math.sin(2.0 * (xli - FASX4))
                     + ds.del3 * math.sin(3.0 * (xli - FASX6)))
            xnddt = (ds.del1 * math.cos(xli - FASX2)
                     + 2.0 * ds.del2 * math.cos(2.0 * (xli - FASX4))
                     + 3.0 * ds.del3 * math.cos(3.0 * (xli - FASX6)))
        else:
            xomi = ds.omegaq + ds.omgdot * self.atime
            x2omi = xomi + xomi
            x2li = xli + xli
            xndot = (ds.d2201 * math.sin(x2omi + xli - G22)
                     + ds.d2211 * math.sin(xli - G22)
                     + ds.d3210 * math.sin(xomi + xli - G32)
                     + ds.d3222 * math.sin(-xomi + xli - G32)
                     + ds.d4410 * math.sin(x2omi + x2li - G44)
                     + ds.d4422 * math.sin(x2li - G44)
                     + ds.d5220 * math.sin(xomi + xli - G52)
                     + ds.d5232 * math.sin(-xomi + xli - G52)
                     + ds.d5421 * math.sin(xomi + x2li - G54)
                     + ds.d5433 * math.sin(-xomi + x2li - G54))
            xnddt = (ds.d2201 * math.cos(x2omi + xli - G22)
                     + ds.d2211 * math.cos(xli - G22)
                     + ds.d3210 * math.cos(xomi + xli - G32)
                     + ds.d3222 * math.cos(-xomi + xli - G32)
                     + ds.d5220 * math.cos(xomi + xli - G52)
                     + ds.d5232 * math.cos(-xomi + xli - G52)
                     + 2.0 * (ds.d4410 * math.cos(x2omi + x2li - G44)
                              + ds.d4422 * math.cos(x2li - G44)
                              + ds.d5421 * math.cos(xomi + x2li - G54)
                              + ds.d5433 * math.cos(-xomi + x2li - G54)))
        xldot = self.xni + ds.xfact
        return xndot, xnddt * xldot, xldot

    def step(self, ds: DeepSpaceCoefficients, delt: float) -> None:
        xndot, xnddt, xldot = self.derivatives(ds)
        self.xli += xldot * delt + xndot * INTEGRATION_STEP2
        self.xni += xndot * delt + xnddt * INTEGRATION_STEP2
        self.atime += delt
        self.phase = IntegratorPhase.STEPPING

    def advance_to(self, ds: DeepSpaceCoefficients, tsince: float) -> tuple[float, float]:
        """Integrate to ``tsince`` minutes; returns (mean motion, resonant longitude)."""
        self.last_requested_time = tsince
        while True:
            if self.atime == 0.0 or (tsince >= 0.0) != (self.atime >= 0.0):
                self.reset(ds)
                break
            if abs(tsince) >= abs(self.atime):
                break
            self.step(ds, -INTEGRATION_STEP if tsince >= 0.0 else INTEGRATION_STEP)

        delt = INTEGRATION_STEP if tsince > 0.0 else -INTEGRATION_STEP
        while abs(tsince - self.atime) >= INTEGRATION_STEP:
            self.step(ds, delt)

        ft = tsince - self.atime
        xndot, xnddt, xldot = self.derivatives(ds)
        xn = self.xni + xndot * ft + xnddt * ft * ft * 0.5
        xl = self.xli + xldot * ft + xndot * ft * ft * 0.5
        return xn, xl


@dataclass
class PeriodicCache:
    """Lunar-solar periodics, refreshed when time moves by 30 minutes or more."""
    saved_time: float = 1.0e20
    pe: float = 0.0
    pinc: float = 0.0
    pl: float = 0.0
    pgh: float = 0.0
    ph: float = 0.0


@dataclass(frozen=True)
class DeepMeanElements:
    """Mean elements after lunar-solar corrections (radians, rad/min)."""
    mean_anomaly: float
    arg_perigee: float
    raan: float
    eccentricity: float
    inclination: float
    mean_motion: float = 0.0


def apply_secular(
    rec: RecoveredElements,
    ds: DeepSpaceCoefficients,
    state: ResonanceState,
    xmdf: float,
    omgadf: float,
    xnode: float,
    tsince: float,
) -> DeepMeanElements:
    """Lunar-solar secular rates and, when resonant, the integrated mean motion."""
    xll = xmdf + ds.ssl * tsince
    omgasm = omgadf + ds.ssg * tsince
    xnodes = xnode + ds.ssh * tsince
    em = rec.eccentricity + ds.sse * tsince
    xinc = rec.inclination + ds.ssi * tsince
    if xinc < 0.0:
        xinc = -xinc
        xnodes += math.pi
        omgasm -= math.pi

    xn = rec.mean_motion
    if ds.resonance is not Resonance.NONE:
        xn, xl = state.advance_to(ds, tsince)
        temp = -xnodes + ds.gmst_epoch + tsince * THDT
        if ds.resonance is Resonance.SYNCHRONOUS:
            xll = xl - omgasm + temp
        else:
            xll = xl + temp + temp

    return DeepMeanElements(
        mean_anomaly=xll,
        arg_perigee=omgasm,
        raan=xnodes,
        eccentricity=em,
        inclination=xinc,
        mean_motion=xn,
    )


def _refresh_periodics(ds: DeepSpaceCoefficients, cache: PeriodicCache, tsince: float) -> None:
    cache.saved_time = tsince

    zm = ds.zmos + ZNS * tsince
    zf = zm + 2.0 * ZES * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    s = ds.solar
    ses = s.e2 * f2 + s.e3 * f3
    sis = s.i2 * f2 + s.i3 * f3
    sls = s.l2 * f2 + s.l3 * f3 + s.l4 * sinzf
    sghs = s.gh2 * f2 + s.gh3 * f3 + s.gh4 * sinzf
    shs = s.h2 * f2 + s.h3 * f3

    zm = ds.zmol + ZNL * tsince
    zf = zm + 2.0 * ZEL * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    m = ds.lunar
    sel = m.e2 * f2 + m.e3 * f3
    sil = m.i2 * f2 + m.i3 * f3
    sll = m.l2 * f2 + m.l3 * f3 + m.l4 * sinzf
    sghl = m.gh2 * f2 + m.gh3 * f3 + m.gh4 * sinzf
    shl = m.h2 * f2 + m.h3 * f3

    cache.pe = ses + sel
    cache.pinc = sis + sil
    cache.pl = sls + sll
    cache.pgh = sghs + sghl
    cache.ph = shs + shl


def apply_periodics(
    ds: DeepSpaceCoefficients,
    cache: PeriodicCache,
    elements: DeepMeanElements,
    tsince: float,
) -> DeepMeanElements:
    """Add lunar-solar periodics; Lyddane form below 0.2 rad inclination."""
    if abs(cache.saved_time - tsince) >= PERIODIC_REFRESH_MINUTES:
        _refresh_periodics(ds, cache, tsince)

    xinc = elements.inclination
    sinis = math.sin(xinc)
    cosis = math.cos(xinc)
    pgh = cache.pgh
    ph = cache.ph
    pinc = cache.pinc
    xinc += pinc
    em = elements.eccentricity + cache.pe
    omgasm = elements.arg_perigee
    xnodes = elements.raan
    xll = elements.mean_anomaly

    if ds.epoch_inclination >= LYDDANE_INCLINATION:
        ph = ph / ds.sin_iq
        pgh = pgh - ds.cos_iq * ph
        omgasm += pgh
        xnodes += ph
        xll += cache.pl
    else:
        sinok = math.sin(xnodes)
        cosok = math.cos(xnodes)
        alfdp = sinis * sinok + ph * cosok + pinc * cosis * sinok
        betdp = sinis * cosok - ph * sinok + pinc * cosis * cosok
        xls = (xll + omgasm + cosis * xnodes
               + cache.pl + pgh - pinc * xnodes * sinis)
        xnodes = _actan(alfdp, betdp)
        xll += cache.pl
        omgasm = xls - xll - math.cos(xinc) * xnodes

    return DeepMeanElements(
        mean_anomaly=xll,
        arg_perigee=omgasm,
        raan=xnodes,
        eccentricity=em,
        inclination=xinc,
        mean_motion=elements.mean_motion,
    )
