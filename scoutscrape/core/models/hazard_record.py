"""
HazardRecord - one object's hazard assessment for one Scout analysis run.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from scoutscrape.core.nullable import ABSENT, OptionalScalar, sql_value


@dataclass(frozen=True)
class HazardRecord:
    """
    Decoded Scout record.

    Identity is (object_name, last_run). Every numeric attribute is an
    optional scalar defaulting to ABSENT; ra, dec and elong are plain text.

    Attributes:
        object_name: NEOCP temporary designation
        last_run: Time of the last orbit analysis (UTC)
        h: Absolute magnitude
        rating: Earth impact rating (0=negligible .. 4=elevated)
        ca_dist: Close-approach distance to Earth (lunar distances)
        moid: Earth minimum orbit intersection distance (au)
        neo_score: Score for being a NEO (0-100)
        neo_1km_score: Score for being a NEO larger than 1 km (0-100)
        pha_score: Score for being a PHA (0-100)
        ieo_score: Score for being an Interior Earth Object (0-100)
        geocentric_score: Score for having a geocentric orbit (0-100)
        tisserand_score: Score for a comet-like orbit (0-100)
        unc: 1-sigma plane-of-sky uncertainty now (arc-minutes)
        unc_p1: 1-sigma plane-of-sky uncertainty one day later (arc-minutes)
        ra: Right ascension of the current ephemeris (hh:mm, J2000)
        dec: Declination of the current ephemeris (degrees, J2000)
        elong: Solar elongation of the current ephemeris (degrees)
        t_ephem: Time of the ephemeris computation (UTC)
        rate: Plane-of-sky rate of motion (arcsec/minute)
        n_obs: Number of observations
        arc: Observation arc length (hours)
        v_inf: Asymptotic velocity relative to Earth (km/s)
        rms_n: RMS of weighted residuals of the best fit orbit
        vmag: V-band magnitude estimate
    """

    object_name: str
    last_run: datetime
    h: OptionalScalar[float] = ABSENT
    rating: OptionalScalar[int] = ABSENT
    ca_dist: OptionalScalar[float] = ABSENT
    moid: OptionalScalar[float] = ABSENT
    neo_score: OptionalScalar[int] = ABSENT
    neo_1km_score: OptionalScalar[int] = ABSENT
    pha_score: OptionalScalar[int] = ABSENT
    ieo_score: OptionalScalar[int] = ABSENT
    geocentric_score: OptionalScalar[int] = ABSENT
    tisserand_score: OptionalScalar[int] = ABSENT
    unc: OptionalScalar[float] = ABSENT
    unc_p1: OptionalScalar[float] = ABSENT
    ra: str = ""
    dec: str = ""
    elong: str = ""
    t_ephem: OptionalScalar[datetime] = ABSENT
    rate: OptionalScalar[float] = ABSENT
    n_obs: OptionalScalar[int] = ABSENT
    arc: OptionalScalar[float] = ABSENT
    v_inf: OptionalScalar[float] = ABSENT
    rms_n: OptionalScalar[float] = ABSENT
    vmag: OptionalScalar[float] = ABSENT

    @property
    def natural_key(self) -> tuple[str, datetime]:
        return (self.object_name, self.last_run)

    def to_row(self) -> tuple[Any, ...]:
        """
        Bind values in column order; ABSENT becomes None (SQL NULL).
        """
        row = []
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (str, datetime)):
                row.append(value)
            else:
                row.append(sql_value(value))
        return tuple(row)
