"""
Table provisioning for Scout observations.

The DDL is idempotent: it creates the table when absent and turns it into a
TimescaleDB hypertable partitioned on ``last_run``. There are no migrations.
"""

from scoutscrape.core.constants import TABLE_NAME

CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    object_name       TEXT NOT NULL,
    last_run          TIMESTAMPTZ NOT NULL,
    h                 REAL,
    rating            SMALLINT,
    ca_dist           REAL,
    moid              REAL,
    neo_score         SMALLINT,
    neo_1km_score     SMALLINT,
    pha_score         SMALLINT,
    ieo_score         SMALLINT,
    geocentric_score  SMALLINT,
    tisserand_score   SMALLINT,
    unc               REAL,
    uncp1             REAL,
    ra                TEXT,
    dec               TEXT,
    elong             TEXT,
    tephem            TIMESTAMPTZ,
    rate              REAL,
    nobs              SMALLINT,
    arc               REAL,
    vinf              REAL,
    rmsn              REAL,
    vmag              REAL,
    PRIMARY KEY (object_name, last_run)
)
"""

CREATE_HYPERTABLE_SQL = (
    f"SELECT create_hypertable('{TABLE_NAME}', 'last_run', if_not_exists => true)"
)

SCHEMA_STATEMENTS = (CREATE_TABLE_SQL, CREATE_HYPERTABLE_SQL)

# Column order matches HazardRecord.to_row()
COLUMNS = (
    "object_name",
    "last_run",
    "h",
    "rating",
    "ca_dist",
    "moid",
    "neo_score",
    "neo_1km_score",
    "pha_score",
    "ieo_score",
    "geocentric_score",
    "tisserand_score",
    "unc",
    "uncp1",
    "ra",
    "dec",
    "elong",
    "tephem",
    "rate",
    "nobs",
    "arc",
    "vinf",
    "rmsn",
    "vmag",
)

INSERT_IGNORE_SQL = (
    f"INSERT INTO {TABLE_NAME} ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join(['%s'] * len(COLUMNS))}) "
    "ON CONFLICT (object_name, last_run) DO NOTHING"
)
